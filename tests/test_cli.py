"""
Tests for the command-line interface.
"""

import io
import pytest
import numpy as np
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


def make_obs(text, start, end):
    from vocr.utils.layout import Point, Quad, TextObservation

    quad = Quad(
        top_left=Point(start / 10, 0.9),
        top_right=Point(end / 10, 0.9),
        bottom_left=Point(start / 10, 0.88),
        bottom_right=Point(end / 10, 0.88),
    )
    return TextObservation(text=text, quad=quad)


class FakeRecognizer:
    """Returns the same observations for every page."""

    def __init__(self, observations):
        self.observations = observations

    def recognize(self, image):
        return list(self.observations)


@pytest.fixture
def fake_pages(monkeypatch):
    """Replace page opening so inputs need not be real images."""
    from vocr import cli
    from vocr.utils.io import pages_from_images

    page_counts = {}

    def open_pages(path, dpi=300):
        count = page_counts.get(Path(path).name, 1)
        return pages_from_images([np.zeros((4, 4), dtype=np.uint8)] * count)

    monkeypatch.setattr(cli, "open_pages", open_pages)
    return page_counts


class TestArgumentParsing:
    """Test argument parsing and option building."""

    def test_defaults(self):
        from vocr.cli import build_options, setup_argparser

        args = setup_argparser().parse_args(["a.png"])
        options = build_options(args)

        assert args.files == ["a.png"]
        assert options.indent_enabled is True
        assert options.indent_string == "    "
        assert options.page_break_enabled is False
        assert options.verbose is False
        assert options.buffered is False
        assert options.reading_order == "engine"

    def test_all_flags(self):
        from vocr.cli import build_options, setup_argparser

        args = setup_argparser().parse_args(
            ["-p", "-v", "-b", "-i", "tab", "--sort-geometry", "a.pdf", "b.png"]
        )
        options = build_options(args)

        assert args.files == ["a.pdf", "b.png"]
        assert options.indent_string == "\t"
        assert options.page_break_enabled is True
        assert options.verbose is True
        assert options.buffered is True
        assert options.reading_order == "geometry"

    def test_indent_no(self):
        from vocr.cli import build_options, setup_argparser

        options = build_options(setup_argparser().parse_args(["-i", "no", "a.png"]))

        assert options.indent_enabled is False

    def test_bad_indent_value(self, capsys):
        """Test that an unknown indent unit is a usage error with status 2."""
        from vocr.cli import main

        with pytest.raises(SystemExit) as exc_info:
            main(["-i", "bogus", "a.png"])

        assert exc_info.value.code == 2
        assert "invalid choice: 'bogus'" in capsys.readouterr().err

    def test_help(self, capsys):
        from vocr.cli import main

        with pytest.raises(SystemExit) as exc_info:
            main(["-h"])

        assert exc_info.value.code == 0
        assert "usage: vocr" in capsys.readouterr().out

    def test_config_overrides(self, monkeypatch):
        from vocr.cli import build_config, setup_argparser

        monkeypatch.setenv("VOCR_LANG", "deu")
        args = setup_argparser().parse_args(["-e", "easyocr", "--dpi", "150", "a.png"])
        config = build_config(args)

        assert config.engine == "easyocr"
        assert config.language == "deu"
        assert config.dpi == 150


class TestMain:
    """Test exit statuses of the entry point."""

    def test_no_files(self, capsys):
        from vocr.cli import main

        assert main([]) == 1
        assert "usage:" in capsys.readouterr().err

    def test_no_files_verbose_message(self, capsys):
        from vocr.cli import main

        assert main(["-v"]) == 1
        assert "ERROR: No files specified." in capsys.readouterr().err

    def test_missing_engine_is_fatal(self, tmp_path, monkeypatch):
        """Test that an engine that cannot be created stops the run."""
        from vocr.cli import main
        from vocr.utils import ocr_text

        def unavailable(self, **kwargs):
            raise ImportError("Tesseract not available")

        monkeypatch.delenv("VOCR_ENGINE", raising=False)
        monkeypatch.setattr(ocr_text.TesseractEngine, "__init__", unavailable)
        image = tmp_path / "a.png"
        image.write_bytes(b"\x00")

        assert main([str(image)]) == 1

    @pytest.mark.parametrize("engine", ["easyocr", "paddleocr"])
    def test_engine_startup_failure_is_fatal(self, engine, tmp_path, monkeypatch, capsys):
        """Test that a backend failing in its constructor stops the run quietly."""
        from types import SimpleNamespace
        from vocr.cli import main

        def broken(*args, **kwargs):
            raise ValueError("Unknown argument: use_gpu")

        monkeypatch.setitem(sys.modules, "easyocr", SimpleNamespace(Reader=broken))
        monkeypatch.setitem(sys.modules, "paddleocr", SimpleNamespace(PaddleOCR=broken))
        image = tmp_path / "a.png"
        image.write_bytes(b"\x00")

        assert main(["-e", engine, str(image)]) == 1
        assert capsys.readouterr().err == ""

    def test_engine_startup_failure_verbose(self, tmp_path, monkeypatch, capsys):
        from types import SimpleNamespace
        from vocr.cli import main

        def broken(*args, **kwargs):
            raise RuntimeError("model download failed")

        monkeypatch.setitem(sys.modules, "easyocr", SimpleNamespace(Reader=broken))
        image = tmp_path / "a.png"
        image.write_bytes(b"\x00")

        assert main(["-v", "-e", "easyocr", str(image)]) == 1
        err = capsys.readouterr().err
        assert err.startswith("ERROR: Cannot create the easyocr engine")
        assert "model download failed" in err

    def test_exit_status_is_capped(self, monkeypatch):
        """Test that many failed files never wrap around to a success status."""
        from vocr import cli

        monkeypatch.setattr(cli, "check_dependencies", lambda recognizer: True)
        monkeypatch.setattr(cli, "run", lambda files, options, config, recognizer=None: len(files))

        assert cli.main([f"missing{i}.png" for i in range(256)]) == 255
        assert cli.main(["a.png", "b.png"]) == 2


class TestRun:
    """Test per-file processing and failure counting."""

    def test_single_image(self, tmp_path, fake_pages):
        from vocr.cli import run
        from vocr.config import OCRConfig, Options

        image = tmp_path / "a.png"
        image.write_bytes(b"\x00")
        sink = io.StringIO()
        recognizer = FakeRecognizer([make_obs("Item", 1, 5), make_obs("Detail", 2, 5)])

        failures = run([str(image)], Options(), OCRConfig(), recognizer=recognizer, sink=sink)

        assert failures == 0
        assert sink.getvalue() == "Item \n    Detail \n"

    def test_page_break_only_for_pdfs(self, tmp_path, fake_pages):
        """Test that -p adds form feeds to PDF pages but not to images."""
        from vocr.cli import run
        from vocr.config import OCRConfig, Options

        image = tmp_path / "a.png"
        image.write_bytes(b"\x00")
        pdf = tmp_path / "b.pdf"
        pdf.write_bytes(b"%PDF-1.4\n")
        fake_pages["b.pdf"] = 2
        sink = io.StringIO()
        recognizer = FakeRecognizer([make_obs("Text", 1, 5)])

        failures = run(
            [str(image), str(pdf)],
            Options(page_break_enabled=True),
            OCRConfig(),
            recognizer=recognizer,
            sink=sink,
        )

        assert failures == 0
        assert sink.getvalue() == "Text \nText \n\fText \n\f"

    def test_failures_are_counted(self, tmp_path, fake_pages):
        """Test that each unusable file adds one to the exit status."""
        from vocr.cli import run
        from vocr.config import OCRConfig, Options

        good = tmp_path / "good.png"
        good.write_bytes(b"\x00")
        notes = tmp_path / "notes.txt"
        notes.write_text("plain text")
        sink = io.StringIO()

        failures = run(
            [str(notes), str(good), str(tmp_path / "missing.png"), ""],
            Options(),
            OCRConfig(),
            recognizer=FakeRecognizer([make_obs("ok", 1, 5)]),
            sink=sink,
        )

        assert failures == 3
        assert sink.getvalue() == "ok \n"

    def test_buffered_matches_streaming(self, tmp_path, fake_pages):
        from vocr.cli import run
        from vocr.config import OCRConfig, Options

        pdf = tmp_path / "doc.pdf"
        pdf.write_bytes(b"%PDF-1.4\n")
        fake_pages["doc.pdf"] = 3
        recognizer = FakeRecognizer([make_obs("Heading", 1, 9), make_obs("Note", 3, 6)])

        streamed = io.StringIO()
        run([str(pdf)], Options(page_break_enabled=True), OCRConfig(),
            recognizer=recognizer, sink=streamed)
        buffered = io.StringIO()
        run([str(pdf)], Options(page_break_enabled=True, buffered=True), OCRConfig(),
            recognizer=recognizer, sink=buffered)

        assert streamed.getvalue() == buffered.getvalue()
        assert streamed.getvalue().count("\f") == 3

    def test_verbose_diagnostics(self, tmp_path, fake_pages, capsys):
        """Test the INFO/ERROR lines written to stderr."""
        from vocr.cli import run
        from vocr.config import OCRConfig, Options, configure_logging

        image = tmp_path / "a.png"
        image.write_bytes(b"\x00")
        options = Options(verbose=True)
        configure_logging(options)

        run([str(image), str(tmp_path / "b.txt")], options, OCRConfig(),
            recognizer=FakeRecognizer([make_obs("x", 1, 5)]), sink=io.StringIO())

        err = capsys.readouterr().err
        assert f"INFO: OCR'ed p. 1 of '{image}'." in err
        assert f"ERROR: Could not OCR '{tmp_path / 'b.txt'}'." in err


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
