"""Plate text extraction and validation.

OCR output is searched for the plate pattern: two uppercase letters, two
digits, two uppercase letters and four digits, with optional whitespace
between the groups (``AB12CD3456`` or ``AB 12 CD 3456``). The first match
wins. Text without a match yields ``None``, which the capture cycle treats
as a non-fatal "no plate found".
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

import numpy as np

logger = logging.getLogger(__name__)

PLATE_PATTERN = re.compile(r"[A-Z]{2}\s*\d{2}\s*[A-Z]{2}\s*\d{4}", re.ASCII)


class OCRBackend(Protocol):
    def recognize_text(self, image: np.ndarray) -> Tuple[str, float]:
        ...


@dataclass(frozen=True)
class PlateReading:
    text: str
    confidence: float
    raw_text: str


def find_plate(text: str) -> Optional[str]:
    """Return the first plate-shaped substring of ``text`` or None."""
    if not text:
        return None
    match = PLATE_PATTERN.search(text)
    return match.group(0) if match else None


class PlateExtractor:
    """Read a cropped vehicle image and validate the plate text.

    Parameters
    ----------
    ocr : OCRBackend
        Engine returning ``(text, confidence)`` for an image.
    """

    def __init__(self, ocr: OCRBackend) -> None:
        self.ocr = ocr

    def extract(self, image: np.ndarray) -> Optional[PlateReading]:
        raw_text, confidence = self.ocr.recognize_text(image)
        plate = find_plate(raw_text)
        if plate is None:
            logger.debug("No plate in OCR text %r", raw_text)
            return None
        return PlateReading(text=plate, confidence=float(confidence), raw_text=raw_text)
