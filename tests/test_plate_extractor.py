from __future__ import annotations

import numpy as np
import pytest

from recognition.plate_extractor import PlateExtractor, find_plate
from conftest import FakeOCR


@pytest.mark.parametrize(
    "text, plate",
    [
        ("AB12CD3456", "AB12CD3456"),
        ("AB 12 CD 3456", "AB 12 CD 3456"),
        ("Plate: MH04AB1234 seen", "MH04AB1234"),
        ("KA01XY0001 and KA02XY0002", "KA01XY0001"),
    ],
)
def test_find_plate_matches(text: str, plate: str) -> None:
    assert find_plate(text) == plate


@pytest.mark.parametrize("text", ["", "AB1CD345", "ab12cd3456", "A812CD3456", "AB12C3456", "AB१२CD३४५६"])
def test_find_plate_rejects(text: str) -> None:
    assert find_plate(text) is None


def test_extractor_returns_reading_with_confidence() -> None:
    extractor = PlateExtractor(FakeOCR("IND AB 12 CD 3456", confidence=0.8))
    reading = extractor.extract(np.zeros((40, 120, 3), dtype=np.uint8))
    assert reading is not None
    assert reading.text == "AB 12 CD 3456"
    assert reading.confidence == pytest.approx(0.8)
    assert reading.raw_text == "IND AB 12 CD 3456"


def test_extractor_without_match() -> None:
    extractor = PlateExtractor(FakeOCR("STOP"))
    assert extractor.extract(np.zeros((40, 120, 3), dtype=np.uint8)) is None
