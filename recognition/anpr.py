"""OCR backends for number plate reading.

Each backend exposes ``recognize_text(image) -> (text, confidence)`` and is
registered in :mod:`detection.registry` under the ``ocr`` task. The engines
are best effort: they may return an empty string or garbage, and it is the
plate extractor's job to decide whether the text contains a plate.

EasyOCR is the default engine. Tesseract (through ``pytesseract``) is
available for hosts where the PyTorch stack that EasyOCR needs is not
installed. Both are optional dependencies; when the selected engine cannot
be loaded the backend warns once and then reports empty text for every
crop, so detection cycles end in "no plate found" rather than crashing.
An engine that raises on a particular crop is logged and reported the
same way, as empty text for that crop.
"""

from __future__ import annotations

import logging
import warnings
from typing import List, Optional, Tuple

import cv2
import numpy as np

from detection.registry import register_backend

logger = logging.getLogger(__name__)


def _to_gray(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


@register_backend("ocr", "easyocr")
class EasyOCRReader:
    """Read plate text with EasyOCR.

    Parameters
    ----------
    languages : list[str], optional
        Language codes to load (e.g. ``["en"]``). More languages make the
        model slower to load but allow regional plates to be read.
    gpu : bool, default False
        GPU usage is disabled by default for portability.
    """

    def __init__(self, languages: Optional[List[str]] = None, gpu: bool = False, **_: object) -> None:
        self.languages = languages or ["en"]
        self.reader: Optional[object] = None
        try:
            import easyocr  # type: ignore

            self.reader = easyocr.Reader(self.languages, gpu=gpu)
        except Exception as exc:
            warnings.warn(f"EasyOCR unavailable, plate reading disabled ({exc}).", stacklevel=2)
            self.reader = None

    def recognize_text(self, image: np.ndarray) -> Tuple[str, float]:
        """Return all text found in ``image`` and the mean confidence.

        Segments are joined with single spaces in the order EasyOCR reports
        them, so a plate split into "AB 12" and "CD 3456" still reads as one
        string.
        """
        if self.reader is None or image.size == 0:
            return "", 0.0
        try:
            results = self.reader.readtext(_to_gray(image))  # type: ignore[attr-defined]
        except Exception:
            logger.exception("EasyOCR failed on a %sx%s crop", image.shape[1], image.shape[0])
            return "", 0.0
        # results is a list of tuples: (bbox, text, confidence)
        if not results:
            return "", 0.0
        text = " ".join(str(r[1]).strip() for r in results if str(r[1]).strip())
        confidence = float(sum(float(r[2]) for r in results) / len(results))
        return text, confidence


@register_backend("ocr", "tesseract")
class TesseractReader:
    """Read plate text with Tesseract.

    The crop is binarised with Otsu's threshold first, which is what
    Tesseract expects for high-contrast printed characters.
    """

    def __init__(self, languages: Optional[List[str]] = None, psm: int = 6, **_: object) -> None:
        # tesseract uses three-letter codes; "en" is the common config value
        langs = languages or ["eng"]
        self.lang = "+".join("eng" if code == "en" else code for code in langs)
        self.config = f"--psm {psm}"
        self.engine: Optional[object] = None
        try:
            import pytesseract  # type: ignore

            pytesseract.get_tesseract_version()
            self.engine = pytesseract
        except Exception as exc:
            warnings.warn(f"Tesseract unavailable, plate reading disabled ({exc}).", stacklevel=2)
            self.engine = None

    def recognize_text(self, image: np.ndarray) -> Tuple[str, float]:
        if self.engine is None or image.size == 0:
            return "", 0.0
        gray = _to_gray(image)
        _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        try:
            data = self.engine.image_to_data(  # type: ignore[attr-defined]
                binary, lang=self.lang, config=self.config, output_type=self.engine.Output.DICT  # type: ignore[attr-defined]
            )
        except Exception:
            logger.exception("Tesseract failed on a %sx%s crop", image.shape[1], image.shape[0])
            return "", 0.0
        words: List[str] = []
        confs: List[float] = []
        for word, conf in zip(data.get("text", []), data.get("conf", [])):
            word = str(word).strip()
            if not word:
                continue
            words.append(word)
            conf = float(conf)
            if conf >= 0:
                confs.append(conf / 100.0)
        if not words:
            return "", 0.0
        return " ".join(words), (sum(confs) / len(confs)) if confs else 0.0
