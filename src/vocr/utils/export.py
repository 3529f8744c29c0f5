"""
Output delivery for reconstructed text.

Provides:
- StreamingEmitter: writes each chunk to the sink as soon as it is produced
- BufferedEmitter: collects a whole document and delivers it at the end

Both receive the same chunks in the same order, so for a given input they
produce byte-identical output; they only differ in when it becomes visible.
"""

import logging
from typing import List, Optional, TextIO

logger = logging.getLogger(__name__)


# ============================================================================
# Emitter Interface
# ============================================================================

class OutputEmitter:
    """Base class for document text delivery."""

    def begin_document(self, source_file: str = "") -> None:
        """Called before the first chunk of a document."""
        self.source_file = source_file

    def write(self, chunk: str) -> None:
        raise NotImplementedError

    def end_document(self) -> Optional[str]:
        """Called after the last chunk; returns the text if it was kept."""
        raise NotImplementedError


# ============================================================================
# Streaming
# ============================================================================

class StreamingEmitter(OutputEmitter):
    """Write-through emitter; no document text is retained."""

    def __init__(self, sink: TextIO):
        self.sink = sink
        self.source_file = ""

    def write(self, chunk: str) -> None:
        if chunk:
            self.sink.write(chunk)
            self.sink.flush()

    def end_document(self) -> Optional[str]:
        self.sink.flush()
        return None


# ============================================================================
# Buffered
# ============================================================================

class BufferedEmitter(OutputEmitter):
    """
    Accumulates a document and delivers it as a single unit.

    Args:
        sink: Optional stream the finished document is written to
    """

    def __init__(self, sink: Optional[TextIO] = None):
        self.sink = sink
        self.source_file = ""
        self._chunks: List[str] = []
        self.text = ""

    def begin_document(self, source_file: str = "") -> None:
        super().begin_document(source_file)
        self._chunks = []
        self.text = ""

    def write(self, chunk: str) -> None:
        if chunk:
            self._chunks.append(chunk)

    def end_document(self) -> Optional[str]:
        self.text = "".join(self._chunks)
        self._chunks = []

        if self.sink is not None:
            self.sink.write(self.text)
            self.sink.flush()

        logger.debug(f"Delivered {len(self.text)} characters for '{self.source_file}'")
        return self.text


def create_emitter(buffered: bool, sink: TextIO) -> OutputEmitter:
    """Pick the delivery mode for a run."""
    if buffered:
        return BufferedEmitter(sink)
    return StreamingEmitter(sink)
