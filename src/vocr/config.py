"""
Configuration and constants for vocr.

This module provides:
- Output formatting options (indentation, page breaks, delivery mode)
- Recognition engine configuration
- Environment overrides
- Logging setup for the diagnostic stream
"""

import os
import sys
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger("vocr")


# ============================================================================
# Constants
# ============================================================================

PROGRAM_NAME = "vocr"

INDENT_SPACES = "4-spaces"
INDENT_TAB = "tab"

INDENT_STRINGS = {
    INDENT_SPACES: "    ",
    INDENT_TAB: "\t",
}

PAGE_BREAK = "\f"

READING_ORDER_ENGINE = "engine"
READING_ORDER_GEOMETRY = "geometry"

SUPPORTED_ENGINES = ("tesseract", "easyocr", "paddleocr")

DIAGNOSTIC_FORMAT = "%(levelname)s: %(message)s"


# ============================================================================
# Processing Configuration
# ============================================================================

@dataclass(frozen=True)
class Options:
    """Output formatting options, read-only for the duration of a run."""
    indent_enabled: bool = True
    indent_unit: str = INDENT_SPACES  # "4-spaces" or "tab"
    page_break_enabled: bool = False
    verbose: bool = False
    buffered: bool = False
    reading_order: str = READING_ORDER_ENGINE  # "engine" or "geometry"

    def __post_init__(self):
        if self.indent_unit not in INDENT_STRINGS:
            raise ValueError(f"Unknown indent unit: {self.indent_unit}")
        if self.reading_order not in (READING_ORDER_ENGINE, READING_ORDER_GEOMETRY):
            raise ValueError(f"Unknown reading order: {self.reading_order}")

    @property
    def indent_string(self) -> str:
        return INDENT_STRINGS[self.indent_unit]


@dataclass
class OCRConfig:
    """Recognition engine configuration."""
    engine: str = "tesseract"  # tesseract, easyocr, paddleocr
    language: str = "eng"
    # Tesseract configuration
    tesseract_config: str = "--oem 3 --psm 3"
    timeout_s: Optional[float] = None  # None = wait forever
    # PDF rasterization
    dpi: int = 300
    use_gpu: bool = False


# ============================================================================
# Default Configuration Instance
# ============================================================================

def get_config() -> OCRConfig:
    """Get the default recognition configuration with environment overrides."""
    config = OCRConfig()

    engine = os.environ.get("VOCR_ENGINE", "").lower()
    if engine in SUPPORTED_ENGINES:
        config.engine = engine

    if os.environ.get("VOCR_LANG"):
        config.language = os.environ["VOCR_LANG"]

    dpi = os.environ.get("VOCR_DPI", "")
    if dpi.isdigit() and int(dpi) > 0:
        config.dpi = int(dpi)

    if os.environ.get("VOCR_USE_GPU", "").lower() == "true":
        config.use_gpu = True

    return config


# ============================================================================
# Logging Configuration
# ============================================================================

def configure_logging(options: Options, stream=None) -> logging.Logger:
    """
    Route vocr diagnostics to the diagnostic stream.

    Messages are printed as ``INFO: ...`` / ``ERROR: ...`` when
    ``options.verbose`` is set; otherwise the run is silent.
    """
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(DIAGNOSTIC_FORMAT))

    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.propagate = False

    if options.verbose:
        logger.setLevel(logging.INFO)
    else:
        logger.setLevel(logging.CRITICAL + 1)

    return logger
