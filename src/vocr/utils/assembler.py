"""
Document assembler module for vocr.

Provides:
- Document summary model
- PageAggregator, which drives recognition and layout reconstruction over
  every page of a document and hands the text to an output emitter
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from ..config import Options, PAGE_BREAK
from ..exceptions import EmptyInput, VocrError, UNREADABLE_INPUT_ERRORS
from .export import BufferedEmitter, OutputEmitter
from .io import PageSource
from .layout import LayoutReconstructor

logger = logging.getLogger(__name__)

PAGE_ERRORS = (VocrError, OSError) + UNREADABLE_INPUT_ERRORS


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class Document:
    """Outcome of processing one input file."""
    source_file: str
    page_count: int = 0
    pages_processed: int = 0
    pages_empty: int = 0
    page_failures: int = 0
    text: Optional[str] = None  # Only kept in buffered mode

    @property
    def succeeded(self) -> bool:
        """At least one page made it through recognition."""
        return self.pages_processed > 0

    def to_dict(self):
        return {
            "source_file": self.source_file,
            "page_count": self.page_count,
            "pages_processed": self.pages_processed,
            "pages_empty": self.pages_empty,
            "page_failures": self.page_failures,
        }


# ============================================================================
# Page Aggregator
# ============================================================================

class PageAggregator:
    """
    Runs layout reconstruction over the pages of one document.

    Pages are handled strictly in order. A page whose image cannot be
    produced, or whose recognition fails, is counted and skipped; it never
    aborts the rest of the document. Each page gets a fresh layout state.
    """

    def __init__(self, recognizer, options: Optional[Options] = None):
        self.recognizer = recognizer
        self.options = options or Options()
        self.reconstructor = LayoutReconstructor(self.options)

    def process(
        self,
        pages: Iterable[PageSource],
        emitter: Optional[OutputEmitter] = None,
        source_file: str = ""
    ) -> Document:
        """
        Process a complete document.

        Args:
            pages: Page sources in document order
            emitter: Where the text goes; defaults to an in-memory buffer
            source_file: Original source file path, for diagnostics

        Returns:
            Document summary; ``text`` holds the output when buffered
        """
        if emitter is None:
            emitter = BufferedEmitter()

        doc = Document(source_file=source_file)
        emitter.begin_document(source_file)

        for page in pages:
            doc.page_count += 1
            self._process_page(page, doc, emitter)

        doc.text = emitter.end_document()

        if not doc.succeeded:
            logger.error(f"No pages could be processed in '{source_file}'.")

        return doc

    def _process_page(self, page: PageSource, doc: Document, emitter: OutputEmitter) -> None:
        try:
            image = page.load()
            observations = self.recognizer.recognize(image)
        except MemoryError:
            raise
        except PAGE_ERRORS as e:
            doc.page_failures += 1
            logger.error(f"OCR failed for p. {page.page_number} of '{doc.source_file}': {e}")
            return

        doc.pages_processed += 1

        try:
            for chunk in self.reconstructor.iter_chunks(observations):
                emitter.write(chunk)
        except EmptyInput:
            doc.pages_empty += 1
            logger.info(f"No text found on p. {page.page_number} of '{doc.source_file}'.")
            return

        emitter.write("\n")
        if self.options.page_break_enabled:
            emitter.write(PAGE_BREAK)

        logger.info(f"OCR'ed p. {page.page_number} of '{doc.source_file}'.")
