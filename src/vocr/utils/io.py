"""
I/O utilities for vocr.

Handles:
- Input file type detection
- Image loading and validation
- PDF page counting and per-page rasterization
- Lazy page sources for the page aggregator
"""

import logging
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Callable, List, Union

import numpy as np

from ..exceptions import RasterizationError, UnsupportedInputError

logger = logging.getLogger(__name__)

INPUT_PDF = "pdf"
INPUT_IMAGE = "image"
INPUT_UNSUPPORTED = "unsupported"

IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.tiff', '.tif', '.bmp', '.gif', '.webp')
PDF_MAGIC = b"%PDF-"


# ============================================================================
# File Type Detection
# ============================================================================

def _has_pdf_header(path: Path) -> bool:
    try:
        with open(path, 'rb') as f:
            return f.read(len(PDF_MAGIC)) == PDF_MAGIC
    except OSError:
        return False


def detect_input_type(input_path: Union[str, Path]) -> str:
    """
    Detect the type of an input file.

    Args:
        input_path: Path to the file

    Returns:
        One of: 'pdf', 'image', 'unsupported'
    """
    input_path = Path(input_path)

    if not input_path.is_file():
        return INPUT_UNSUPPORTED

    suffix = input_path.suffix.lower()
    if suffix == '.pdf':
        return INPUT_PDF
    elif suffix in IMAGE_EXTENSIONS:
        return INPUT_IMAGE

    # No usable extension: look at the content
    if _has_pdf_header(input_path):
        return INPUT_PDF

    return INPUT_UNSUPPORTED


# ============================================================================
# Image Loading
# ============================================================================

def load_image(image_path: Union[str, Path]) -> np.ndarray:
    """
    Load an image from file.

    Args:
        image_path: Path to the image file

    Returns:
        Numpy array representing the image (BGR format)

    Raises:
        FileNotFoundError: If image file doesn't exist
        ValueError: If image cannot be decoded
    """
    import cv2

    image_path = Path(image_path)
    if not image_path.exists():
        raise FileNotFoundError(f"Image file not found: {image_path}")

    img = cv2.imread(str(image_path), cv2.IMREAD_COLOR)

    if img is None:
        raise ValueError(f"Not a valid image: '{image_path}'")

    logger.debug(f"Loaded image: {image_path}, shape: {img.shape}")
    return img


# ============================================================================
# PDF Rasterization
# ============================================================================

def get_pdf_page_count(pdf_path: Union[str, Path]) -> int:
    """
    Get the number of pages in a PDF file.

    Raises:
        RasterizationError: If the PDF cannot be parsed or poppler is missing
    """
    from pdf2image import pdfinfo_from_path
    from pdf2image.exceptions import PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError

    try:
        info = pdfinfo_from_path(str(pdf_path))
    except PDFInfoNotInstalledError as e:
        raise RasterizationError(
            "Poppler is not installed. Install with:\n"
            "  macOS: brew install poppler\n"
            "  Linux: sudo apt-get install poppler-utils"
        ) from e
    except (PDFPageCountError, PDFSyntaxError) as e:
        raise RasterizationError(f"Not a valid PDF: '{pdf_path}': {e}") from e

    return int(info.get('Pages', 0))


def render_pdf_page(
    pdf_path: Union[str, Path],
    page_number: int,
    dpi: int = 300
) -> np.ndarray:
    """
    Render one PDF page to an image using pdf2image (poppler backend).

    Args:
        pdf_path: Path to the PDF file
        page_number: 1-indexed page to render
        dpi: Resolution for rendering

    Returns:
        Numpy array (BGR format) for the page

    Raises:
        RasterizationError: If the page cannot be rendered
    """
    from pdf2image import convert_from_path

    try:
        pil_images = convert_from_path(
            str(pdf_path),
            dpi=dpi,
            first_page=page_number,
            last_page=page_number,
            fmt='png'
        )
    except Exception as e:
        raise RasterizationError(
            f"Could not make an image for p.{page_number} of '{pdf_path}': {e}"
        ) from e

    if not pil_images:
        raise RasterizationError(
            f"Could not make an image for p.{page_number} of '{pdf_path}'"
        )

    img_array = np.array(pil_images[0].convert('RGB'))
    # RGB -> BGR for OpenCV compatibility
    return img_array[:, :, ::-1].copy()


# ============================================================================
# Page Sources
# ============================================================================

@dataclass
class PageSource:
    """One page of a document, loaded on demand."""
    page_number: int
    loader: Callable[[], np.ndarray]

    def load(self) -> np.ndarray:
        return self.loader()


def _already_loaded(image: np.ndarray) -> np.ndarray:
    return image


def pages_from_images(images: List[np.ndarray]) -> List[PageSource]:
    """Wrap already-decoded images as page sources."""
    return [
        PageSource(page_number=i, loader=partial(_already_loaded, image))
        for i, image in enumerate(images, 1)
    ]


def open_pages(input_path: Union[str, Path], dpi: int = 300) -> List[PageSource]:
    """
    Build the page sources for an input file.

    A plain image has one page; a PDF has one source per page, each
    rasterized only when loaded.

    Raises:
        UnsupportedInputError: If the file is neither an image nor a PDF
        RasterizationError: If the PDF cannot be read or has no pages
    """
    input_path = Path(input_path)
    input_type = detect_input_type(input_path)

    logger.debug(f"Input type detected: {input_type}")

    if input_type == INPUT_PDF:
        page_count = get_pdf_page_count(input_path)
        if page_count < 1:
            raise RasterizationError(f"PDF has no pages: '{input_path}'")
        return [
            PageSource(page_number=n, loader=partial(render_pdf_page, input_path, n, dpi))
            for n in range(1, page_count + 1)
        ]

    if input_type == INPUT_IMAGE:
        return [PageSource(page_number=1, loader=partial(load_image, input_path))]

    raise UnsupportedInputError(f"'{input_path}' not a supported image or a PDF")
