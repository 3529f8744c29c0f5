"""
vocr
====

Recognize the text on images and PDF pages and print it with an
approximation of the original paragraph structure and indentation.

Main components:
- Text recognition (Tesseract, EasyOCR, PaddleOCR)
- Layout reconstruction from fragment geometry
- Page aggregation across multi-page documents
- Streaming or buffered output
"""

__version__ = "0.2.0"
