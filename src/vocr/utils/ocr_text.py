"""
Text recognition module for vocr.

Provides:
- A single recognizer interface returning ordered TextObservations
- Multi-engine support (Tesseract, EasyOCR, PaddleOCR)
- Conversion of engine pixel boxes into page-normalized quads

Engines report fragments in their own emission order; nothing here sorts
them. An engine that fails outright raises RecognitionError, an engine that
finds nothing returns an empty list.
"""

import logging
from typing import List, Optional, Dict, Any, Tuple
import numpy as np

from ..config import OCRConfig, SUPPORTED_ENGINES
from ..exceptions import RecognitionError
from .layout import Quad, TextObservation, filter_observations

logger = logging.getLogger(__name__)


# Map Tesseract language codes to the codes other engines expect
EASYOCR_LANGS = {"eng": "en", "chi_sim": "ch_sim", "chi_tra": "ch_tra", "deu": "de", "fra": "fr"}
PADDLE_LANGS = {"eng": "en", "chi_sim": "ch", "chi_tra": "chinese_cht", "deu": "german", "fra": "french"}


def _image_size(image: np.ndarray) -> Tuple[int, int]:
    """Return (width, height), refusing empty images."""
    if image is None or getattr(image, "size", 0) == 0:
        raise RecognitionError("Empty image")
    height, width = image.shape[:2]
    return width, height


def _polygon_quad(points: Any, width: int, height: int) -> Optional[Quad]:
    """Normalize an engine polygon; malformed geometry becomes None."""
    try:
        return Quad.from_polygon(points, width, height)
    except (ValueError, TypeError, IndexError):
        return None


# ============================================================================
# Recognizer
# ============================================================================

class TextRecognizer:
    """
    Main recognition interface.

    The engine is created on first use so that a missing backend is only
    an error when something actually needs recognizing.
    """

    def __init__(self, config: Optional[OCRConfig] = None):
        self.config = config or OCRConfig()
        if self.config.engine not in SUPPORTED_ENGINES:
            raise ValueError(f"Unknown OCR engine: {self.config.engine}")
        self._engine = None

    @property
    def engine(self):
        if self._engine is None:
            self._engine = self._create_engine(self.config.engine)
            logger.debug(f"Initialized OCR engine: {self.config.engine}")
        return self._engine

    def _create_engine(self, engine_name: str):
        """Create an OCR engine instance."""
        try:
            if engine_name == "tesseract":
                return TesseractEngine(
                    language=self.config.language,
                    config=self.config.tesseract_config,
                    timeout=self.config.timeout_s
                )
            elif engine_name == "easyocr":
                return EasyOCREngine(language=self.config.language, use_gpu=self.config.use_gpu)
            elif engine_name == "paddleocr":
                return PaddleOCREngine(language=self.config.language, use_gpu=self.config.use_gpu)
        except ImportError as e:
            raise RecognitionError(str(e)) from e
        except Exception as e:
            raise RecognitionError(f"Failed to initialize {engine_name}: {e}") from e
        raise ValueError(f"Unknown OCR engine: {engine_name}")

    def ensure_available(self) -> None:
        """Create the engine now, raising RecognitionError if it is missing."""
        _ = self.engine

    def recognize(self, image: np.ndarray) -> List[TextObservation]:
        """
        Recognize the text fragments on one page image.

        Args:
            image: Page image (BGR or grayscale)

        Returns:
            Usable fragments in engine order; empty if no text was found

        Raises:
            RecognitionError: If the engine failed
        """
        observations = self.engine.recognize(image)
        return filter_observations(observations)


# ============================================================================
# Tesseract Engine
# ============================================================================

class TesseractEngine:
    """OCR using Tesseract, with word boxes merged into text lines."""

    def __init__(
        self,
        language: str = "eng",
        config: str = "--oem 3 --psm 3",
        timeout: Optional[float] = None
    ):
        try:
            import pytesseract
            self.pytesseract = pytesseract

            # Test that tesseract is installed
            pytesseract.get_tesseract_version()

        except Exception as e:
            raise ImportError(
                f"Tesseract not available: {e}\n"
                "Install with: pip install pytesseract\n"
                "Also install Tesseract: https://github.com/tesseract-ocr/tesseract"
            )

        self.language = language
        self.config = config
        self.timeout = timeout

    def _preprocess_for_ocr(self, image: np.ndarray) -> np.ndarray:
        """Convert to grayscale; geometry is left untouched."""
        import cv2

        if len(image.shape) == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        return image

    def recognize(self, image: np.ndarray) -> List[TextObservation]:
        """Recognize text lines using Tesseract."""
        width, height = _image_size(image)
        processed = self._preprocess_for_ocr(image)

        try:
            data = self.pytesseract.image_to_data(
                processed,
                lang=self.language,
                config=self.config,
                output_type=self.pytesseract.Output.DICT,
                timeout=self.timeout or 0
            )
        except (self.pytesseract.TesseractError, RuntimeError, OSError) as e:
            raise RecognitionError(f"Tesseract error: {e}") from e

        return self.lines_from_data(data, width, height)

    @staticmethod
    def lines_from_data(data: Dict[str, List[Any]], width: int, height: int) -> List[TextObservation]:
        """
        Merge Tesseract word rows into line observations.

        Lines keep the order in which Tesseract first reports them.
        """
        lines: Dict[Tuple[int, int, int, int], Dict[str, Any]] = {}

        for i in range(len(data.get("text", []))):
            if "level" in data and int(data["level"][i]) != 5:
                continue

            text = str(data["text"][i]).strip()
            if not text:
                continue

            try:
                conf = float(data["conf"][i])
            except (KeyError, ValueError, TypeError):
                conf = -1.0

            key = (
                int(data.get("page_num", [1] * len(data["text"]))[i]),
                int(data["block_num"][i]),
                int(data["par_num"][i]),
                int(data["line_num"][i]),
            )
            left = int(data["left"][i])
            top = int(data["top"][i])
            right = left + int(data["width"][i])
            bottom = top + int(data["height"][i])

            line = lines.get(key)
            if line is None:
                lines[key] = {
                    "words": [text],
                    "confs": [conf] if conf >= 0 else [],
                    "bbox": [left, top, right, bottom],
                }
                continue

            line["words"].append(text)
            if conf >= 0:
                line["confs"].append(conf)
            bbox = line["bbox"]
            bbox[0] = min(bbox[0], left)
            bbox[1] = min(bbox[1], top)
            bbox[2] = max(bbox[2], right)
            bbox[3] = max(bbox[3], bottom)

        observations = []
        for line in lines.values():
            x1, y1, x2, y2 = line["bbox"]
            confidence = float(np.mean(line["confs"])) / 100.0 if line["confs"] else None
            observations.append(TextObservation(
                text=" ".join(line["words"]),
                quad=Quad.from_bbox(x1, y1, x2, y2, width, height),
                confidence=confidence
            ))

        return observations


# ============================================================================
# EasyOCR Engine
# ============================================================================

class EasyOCREngine:
    """OCR using EasyOCR."""

    def __init__(
        self,
        language: str = "eng",
        use_gpu: bool = False
    ):
        try:
            import easyocr

            self.reader = easyocr.Reader(
                [EASYOCR_LANGS.get(language, language)],
                gpu=use_gpu,
                verbose=False
            )
        except ImportError:
            raise ImportError(
                "EasyOCR not available. Install with: pip install easyocr"
            )
        except Exception as e:
            raise RuntimeError(f"Failed to initialize EasyOCR: {e}")

        self.language = language

    def recognize(self, image: np.ndarray) -> List[TextObservation]:
        """Recognize text using EasyOCR."""
        width, height = _image_size(image)

        try:
            result = self.reader.readtext(image)
        except Exception as e:
            raise RecognitionError(f"EasyOCR error: {e}") from e

        observations = []
        for bbox_points, text, conf in result:
            observations.append(TextObservation(
                text=text,
                quad=_polygon_quad(bbox_points, width, height),
                confidence=float(conf)
            ))

        return observations


# ============================================================================
# PaddleOCR Engine
# ============================================================================

class PaddleOCREngine:
    """OCR using PaddleOCR."""

    def __init__(
        self,
        language: str = "eng",
        use_gpu: bool = False
    ):
        try:
            from paddleocr import PaddleOCR
            # Suppress PaddleOCR logging
            logging.getLogger('ppocr').setLevel(logging.WARNING)

            paddle_lang = PADDLE_LANGS.get(language, language)

            # Try new API first, fall back to old API
            try:
                self.ocr = PaddleOCR(
                    use_angle_cls=True,
                    lang=paddle_lang,
                    use_gpu=use_gpu
                )
            except TypeError:
                self.ocr = PaddleOCR(
                    use_angle_cls=True,
                    lang=paddle_lang,
                    use_gpu=use_gpu,
                    show_log=False
                )
        except ImportError:
            raise ImportError(
                "PaddleOCR not available. Install with: pip install paddleocr"
            )
        except Exception as e:
            raise RuntimeError(f"Failed to initialize PaddleOCR: {e}")

        self.language = language

    def recognize(self, image: np.ndarray) -> List[TextObservation]:
        """Recognize text using PaddleOCR."""
        width, height = _image_size(image)

        try:
            result = self.ocr.ocr(image, cls=True)
        except Exception as e:
            raise RecognitionError(f"PaddleOCR error: {e}") from e

        return self.observations_from_result(result, width, height)

    @staticmethod
    def observations_from_result(result: Any, width: int, height: int) -> List[TextObservation]:
        """Convert either PaddleOCR result layout into observations."""
        if not result or not result[0]:
            return []

        page = result[0]
        observations = []

        # PaddleOCR 3.x returns one dict per page
        if hasattr(page, "get") and page.get("rec_texts") is not None:
            for text, poly, conf in zip(page["rec_texts"], page["rec_polys"], page["rec_scores"]):
                observations.append(TextObservation(
                    text=text,
                    quad=_polygon_quad(poly, width, height),
                    confidence=float(conf)
                ))
            return observations

        for line_data in page:
            if len(line_data) < 2:
                continue
            bbox_points = line_data[0]
            text, conf = line_data[1]
            observations.append(TextObservation(
                text=text,
                quad=_polygon_quad(bbox_points, width, height),
                confidence=float(conf)
            ))

        return observations
