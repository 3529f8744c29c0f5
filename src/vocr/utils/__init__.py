"""
Utility modules for vocr.
"""

from .io import load_image, detect_input_type, open_pages, PageSource
from .layout import (
    LayoutReconstructor, LayoutState, Point, Quad, TextObservation,
    filter_observations, sort_by_reading_order,
)
from .ocr_text import TextRecognizer
from .assembler import PageAggregator, Document
from .export import OutputEmitter, StreamingEmitter, BufferedEmitter, create_emitter

__all__ = [
    # IO
    "load_image", "detect_input_type", "open_pages", "PageSource",
    # Layout
    "LayoutReconstructor", "LayoutState", "Point", "Quad", "TextObservation",
    "filter_observations", "sort_by_reading_order",
    # OCR
    "TextRecognizer",
    # Assembly
    "PageAggregator", "Document",
    # Export
    "OutputEmitter", "StreamingEmitter", "BufferedEmitter", "create_emitter",
]
