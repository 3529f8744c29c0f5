#!/usr/bin/env python
"""
Command-line interface for vocr.

Usage:
    vocr [-h] [-p] [-v] [-i {no,tab}] file [file ...]

Examples:
    # Recognize an image, indenting with four spaces
    vocr scan.png

    # Recognize a PDF with a form feed after every page
    vocr -p document.pdf

    # Tab indentation, diagnostics on stderr
    vocr -v -i tab notes.jpg
"""

import sys
import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import (
    Options, OCRConfig, get_config, configure_logging,
    INDENT_SPACES, INDENT_TAB, PROGRAM_NAME, READING_ORDER_ENGINE,
    READING_ORDER_GEOMETRY, SUPPORTED_ENGINES,
)
from .exceptions import RecognitionError, VocrError, UNREADABLE_INPUT_ERRORS
from .utils.assembler import PageAggregator
from .utils.export import OutputEmitter, create_emitter
from .utils.io import INPUT_PDF, INPUT_UNSUPPORTED, detect_input_type, open_pages
from .utils.ocr_text import TextRecognizer

logger = logging.getLogger("vocr")

INDENT_NO = "no"

FILE_ERRORS = (VocrError, OSError) + UNREADABLE_INPUT_ERRORS

# Exit statuses wrap modulo 256
MAX_EXIT_STATUS = 255


def setup_argparser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog=PROGRAM_NAME,
        description="Recognize text in images and PDFs, keeping an approximation "
                    "of the original paragraphs and indentation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit status is 0 on success, 1 if no files were given, and otherwise the
number of files that could not be recognized (at most 255).
        """
    )

    parser.add_argument(
        "files",
        nargs="*",
        metavar="file",
        help="Input image or PDF file(s)"
    )

    parser.add_argument(
        "-p", "--page-break",
        action="store_true",
        help="Add a page break (form feed) after each PDF page"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print informational and error messages on stderr"
    )

    parser.add_argument(
        "-i", "--indent",
        choices=[INDENT_NO, INDENT_TAB],
        default=None,
        help="'no' disables indenting, 'tab' indents with tabs (default: 4 spaces)"
    )

    parser.add_argument(
        "-b", "--buffered",
        action="store_true",
        help="Print each file's text in one piece once it is complete"
    )

    parser.add_argument(
        "-e", "--engine",
        choices=list(SUPPORTED_ENGINES),
        default=None,
        help="Recognition engine (default: tesseract, or $VOCR_ENGINE)"
    )

    parser.add_argument(
        "-l", "--lang",
        default=None,
        help="Recognition language, Tesseract code (default: eng, or $VOCR_LANG)"
    )

    parser.add_argument(
        "--dpi",
        type=int,
        default=None,
        help="DPI for PDF to image conversion (default: 300, or $VOCR_DPI)"
    )

    parser.add_argument(
        "--sort-geometry",
        action="store_true",
        help="Re-order fragments top-to-bottom instead of trusting the engine order"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def build_options(args: argparse.Namespace) -> Options:
    """Translate parsed arguments into formatting options."""
    return Options(
        indent_enabled=args.indent != INDENT_NO,
        indent_unit=INDENT_TAB if args.indent == INDENT_TAB else INDENT_SPACES,
        page_break_enabled=args.page_break,
        verbose=args.verbose,
        buffered=args.buffered,
        reading_order=READING_ORDER_GEOMETRY if args.sort_geometry else READING_ORDER_ENGINE,
    )


def build_config(args: argparse.Namespace) -> OCRConfig:
    """Environment defaults, overridden by the command line."""
    config = get_config()
    if args.engine:
        config.engine = args.engine
    if args.lang:
        config.language = args.lang
    if args.dpi:
        config.dpi = args.dpi
    return config


def check_dependencies(recognizer: TextRecognizer) -> bool:
    """Check that the recognition engine can be created."""
    try:
        recognizer.ensure_available()
    except RecognitionError as e:
        logger.error(f"Cannot create the {recognizer.config.engine} engine: {e}")
        return False

    try:
        import pdf2image  # noqa: F401
    except ImportError:
        logger.info("pdf2image is not installed, PDF input will fail")

    return True


def ocr_file(
    path: str,
    recognizer: TextRecognizer,
    emitter: OutputEmitter,
    options: Options,
    config: OCRConfig
) -> bool:
    """
    Recognize one input file and emit its text.

    Returns:
        True if at least one page was processed
    """
    if not path:
        logger.error("Filename is empty!")
        return False

    input_type = detect_input_type(path)
    if input_type == INPUT_UNSUPPORTED:
        logger.error(f"'{path}' not a supported image or a PDF.")
        return False

    try:
        pages = open_pages(Path(path), dpi=config.dpi)
    except FILE_ERRORS as e:
        logger.error(str(e))
        return False

    # Page breaks only separate the pages of a PDF
    if input_type != INPUT_PDF:
        options = replace(options, page_break_enabled=False)

    aggregator = PageAggregator(recognizer, options)
    document = aggregator.process(pages, emitter, source_file=path)

    if document.page_failures:
        logger.info(
            f"{document.page_failures} of {document.page_count} page(s) failed in '{path}'."
        )

    return document.succeeded


def run(
    files: List[str],
    options: Options,
    config: OCRConfig,
    recognizer: Optional[TextRecognizer] = None,
    sink=None
) -> int:
    """
    Recognize every file in order.

    Returns:
        The number of files that failed
    """
    sink = sink if sink is not None else sys.stdout
    recognizer = recognizer or TextRecognizer(config)
    emitter = create_emitter(options.buffered, sink)

    failures = 0
    for path in files:
        if not ocr_file(path, recognizer, emitter, options, config):
            failures += 1
            logger.error(f"Could not OCR '{path}'.")

    return failures


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = setup_argparser()
    args = parser.parse_args(argv)

    options = build_options(args)
    configure_logging(options)

    if not args.files:
        logger.error("No files specified.")
        parser.print_usage(sys.stderr)
        return 1

    config = build_config(args)

    try:
        recognizer = TextRecognizer(config)
        if not check_dependencies(recognizer):
            return 1
        failures = run(args.files, options, config, recognizer=recognizer)
        return min(failures, MAX_EXIT_STATUS)
    except MemoryError:
        logger.error("Cannot allocate buffer for text.")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
