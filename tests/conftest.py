from __future__ import annotations

import datetime
import itertools
import threading
from typing import List, Optional, Sequence

import numpy as np
import pytest

from challan.lifecycle import ChallanService
from challan.models import CameraParameters, Region
from detection.region_detector import RegionDetector
from recognition.plate_extractor import PlateExtractor
from storage import AuditLogger, InMemoryChallanStore


class FakeVision:
    """Vision backend returning a fixed list of regions."""

    def __init__(self, regions: Sequence[Region] = ()) -> None:
        self.regions = list(regions)
        self.calls = 0

    def extract_regions(self, frame: np.ndarray) -> List[Region]:
        self.calls += 1
        return list(self.regions)


class FakeOCR:
    """OCR backend returning canned texts in order, then repeating the last."""

    def __init__(self, *texts: str, confidence: float = 0.9) -> None:
        self.texts = list(texts) or [""]
        self.confidence = confidence
        self._index = 0

    def recognize_text(self, image: np.ndarray):
        text = self.texts[min(self._index, len(self.texts) - 1)]
        self._index += 1
        return text, self.confidence


class FakeCamera:
    def __init__(self, fail_open: bool = False, frames: Optional[int] = None) -> None:
        self.fail_open = fail_open
        self.frames = frames
        self.opened = False
        self.released = False
        self.reads = 0

    def open(self) -> None:
        if self.fail_open:
            raise RuntimeError("permission denied")
        self.opened = True

    def read(self):
        self.reads += 1
        if self.frames is not None and self.reads > self.frames:
            return False, None
        return True, np.zeros((240, 320, 3), dtype=np.uint8)

    def release(self) -> None:
        self.released = True


def make_clock(start: Optional[datetime.datetime] = None):
    """Clock advancing one second per call, for stable newest-first ordering."""
    start = start or datetime.datetime(2024, 1, 1, 8, 0, tzinfo=datetime.timezone.utc)
    counter = itertools.count()
    lock = threading.Lock()

    def clock() -> datetime.datetime:
        with lock:
            return start + datetime.timedelta(seconds=next(counter))

    return clock


@pytest.fixture
def camera_params() -> CameraParameters:
    # pixels / 100 = metres
    return CameraParameters(focal_length=35.0, sensor_width=23.5, distance=0.35)


@pytest.fixture
def store() -> InMemoryChallanStore:
    return InMemoryChallanStore()


@pytest.fixture
def audit(tmp_path) -> AuditLogger:
    return AuditLogger(tmp_path / "logs")


@pytest.fixture
def service(store, audit) -> ChallanService:
    return ChallanService(store, audit=audit, clock=make_clock())


@pytest.fixture
def frame() -> np.ndarray:
    return np.zeros((480, 640, 3), dtype=np.uint8)


def make_detector(*regions: Region) -> RegionDetector:
    return RegionDetector(FakeVision(regions))


def make_extractor(*texts: str, confidence: float = 0.9) -> PlateExtractor:
    return PlateExtractor(FakeOCR(*texts, confidence=confidence))
