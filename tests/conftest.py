"""
Shared pytest fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture(autouse=True)
def quiet_logging():
    """Leave the vocr logger silent after each test."""
    yield
    from vocr.config import Options, configure_logging
    configure_logging(Options(verbose=False))
