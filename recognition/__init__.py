"""Recognition package.

Reads licence plates from vehicle crops. OCR engines live in
:mod:`recognition.anpr`; :class:`PlateExtractor` validates their output
against the plate format.
"""

from .plate_extractor import PLATE_PATTERN, PlateExtractor, PlateReading, find_plate

__all__ = ["PLATE_PATTERN", "PlateExtractor", "PlateReading", "find_plate"]
