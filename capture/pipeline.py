"""One detection cycle: frame in, challans out.

For every gated region in the frame the pipeline crops the vehicle, reads
the plate, estimates the dimensions, classifies the vehicle and asks the
challan service to issue a no-entry zone challan. Regions without a
readable plate, or whose reading fails, are skipped. There is no tracking
across frames: a vehicle that stays in view for several cycles is charged
once per cycle in which its plate is read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List

import numpy as np

from analytics.dimension_estimator import estimate_region_dimensions
from challan.lifecycle import ChallanService
from challan.models import CameraParameters, DetectionResult, Region
from detection.region_detector import RegionDetector
from recognition.plate_extractor import PlateExtractor
from rules.vehicle_classifier import VehicleClassifier

logger = logging.getLogger(__name__)


class CycleStatus(str, Enum):
    DETECTED = "detected"
    NO_DETECTION = "no_detection"
    BUSY = "busy"
    NO_FRAME = "no_frame"
    STORE_ERROR = "store_error"
    ERROR = "error"


@dataclass(frozen=True)
class CycleOutcome:
    """Result of one capture cycle (timer tick or manual capture)."""

    status: CycleStatus
    message: str
    results: List[DetectionResult] = field(default_factory=list)
    region_count: int = 0

    @property
    def detected(self) -> bool:
        return self.status is CycleStatus.DETECTED


def crop_region(frame: np.ndarray, region: Region) -> np.ndarray:
    """Return the part of ``frame`` covered by ``region``, clipped to the frame."""
    height, width = frame.shape[:2]
    x1, y1, x2, y2 = region.as_xyxy()
    x1, y1 = max(0, x1), max(0, y1)
    x2, y2 = min(width, x2), min(height, y2)
    return frame[y1:y2, x1:x2]


class DetectionPipeline:
    """Run the detection-to-challan chain on single frames.

    Parameters
    ----------
    region_detector : RegionDetector
        Finds gated vehicle candidates.
    plate_extractor : PlateExtractor
        Reads and validates plate text from a crop.
    service : ChallanService
        Issues the challans.
    camera_params : CameraParameters
        Calibration for the camera whose frames are processed.
    location : str
        Monitored location written on every challan.
    classifier : VehicleClassifier, optional
        Defaults to the standard rule table.
    """

    def __init__(
        self,
        region_detector: RegionDetector,
        plate_extractor: PlateExtractor,
        service: ChallanService,
        camera_params: CameraParameters,
        location: str,
        classifier: VehicleClassifier | None = None,
    ) -> None:
        self.region_detector = region_detector
        self.plate_extractor = plate_extractor
        self.service = service
        self.camera_params = camera_params
        self.location = location
        self.classifier = classifier or VehicleClassifier()

    def resolve_region(self, frame: np.ndarray, region: Region) -> DetectionResult | None:
        """Read and classify one region without issuing anything."""
        reading = self.plate_extractor.extract(crop_region(frame, region))
        if reading is None:
            return None
        dims = estimate_region_dimensions(region, self.camera_params)
        return DetectionResult(
            vehicle_number=reading.text,
            vehicle_type=self.classifier.classify(dims),
            dimensions=dims,
            confidence=reading.confidence,
            region=region,
        )

    def process_frame(self, frame: np.ndarray) -> CycleOutcome:
        regions = self.region_detector.detect(frame)
        if not regions:
            return CycleOutcome(CycleStatus.NO_DETECTION, "No vehicles detected")

        results: List[DetectionResult] = []
        store_failures = 0
        for region in regions:
            try:
                detection = self.resolve_region(frame, region)
            except Exception:
                # one unreadable region must not cost the others in the frame
                logger.exception("Reading region %s failed", region.as_xyxy())
                continue
            if detection is None:
                logger.debug("No plate read in region %s", region.as_xyxy())
                continue
            outcome = self.service.issue_automatic(
                detection.vehicle_number,
                detection.vehicle_type,
                self.location,
                dimensions=detection.dimensions,
            )
            if not outcome.ok:
                store_failures += 1
                continue
            results.append(replace(detection, challan_id=outcome.challan.id))

        if results:
            message = f"{len(results)} violation(s) recorded"
            return CycleOutcome(CycleStatus.DETECTED, message, results, len(regions))
        if store_failures:
            return CycleOutcome(
                CycleStatus.STORE_ERROR,
                f"Could not store {store_failures} challan(s)",
                region_count=len(regions),
            )
        return CycleOutcome(CycleStatus.NO_DETECTION, "No number plate found", region_count=len(regions))
