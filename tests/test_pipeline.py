from __future__ import annotations

import numpy as np
import pytest

from capture.pipeline import CycleStatus, DetectionPipeline, crop_region
from challan.lifecycle import ChallanService
from challan.models import CameraParameters, ChallanStatus, Region, VehicleType
from recognition.plate_extractor import PlateExtractor
from storage import InMemoryChallanStore
from conftest import make_clock, make_detector, make_extractor

CAR_REGION = Region(x=100, y=100, width=120, height=90, area=10800.0)
BUS_REGION = Region(x=300, y=50, width=250, height=300, area=75000.0)


def _pipeline(service, camera_params, regions, *texts) -> DetectionPipeline:
    return DetectionPipeline(
        make_detector(*regions),
        make_extractor(*texts),
        service,
        camera_params,
        "Main Street No-Entry Zone",
    )


def test_detected_vehicle_gets_challan(service, store, camera_params, frame) -> None:
    outcome = _pipeline(service, camera_params, [CAR_REGION], "AB 12 CD 3456").process_frame(frame)

    assert outcome.status is CycleStatus.DETECTED
    assert outcome.region_count == 1
    [result] = outcome.results
    assert result.vehicle_number == "AB 12 CD 3456"
    assert result.vehicle_type is VehicleType.CAR
    assert result.dimensions.width == pytest.approx(1.2)
    assert result.dimensions.length == pytest.approx(3.0)
    assert result.confidence == pytest.approx(0.9)

    challan = store.get(result.challan_id)
    assert challan.status is ChallanStatus.PENDING
    assert challan.amount == 1500
    assert challan.location == "Main Street No-Entry Zone"
    assert challan.dimensions == result.dimensions


def test_no_regions(service, store, camera_params, frame) -> None:
    outcome = _pipeline(service, camera_params, [], "AB12CD3456").process_frame(frame)
    assert outcome.status is CycleStatus.NO_DETECTION
    assert outcome.message == "No vehicles detected"
    assert store.all() == []


def test_region_without_plate(service, store, camera_params, frame) -> None:
    outcome = _pipeline(service, camera_params, [CAR_REGION], "NO ENTRY").process_frame(frame)
    assert outcome.status is CycleStatus.NO_DETECTION
    assert outcome.message == "No number plate found"
    assert outcome.region_count == 1
    assert store.all() == []


def test_one_challan_per_resolved_region(service, store, camera_params, frame) -> None:
    pipeline = _pipeline(service, camera_params, [CAR_REGION, BUS_REGION], "AB12CD3456", "MH04AB1234")
    outcome = pipeline.process_frame(frame)
    assert [r.vehicle_type for r in outcome.results] == [VehicleType.CAR, VehicleType.BUS]
    assert len(store.all()) == 2


def test_unresolved_regions_are_skipped(service, store, camera_params, frame) -> None:
    pipeline = _pipeline(service, camera_params, [CAR_REGION, BUS_REGION], "smudge", "MH04AB1234")
    outcome = pipeline.process_frame(frame)
    assert [r.vehicle_number for r in outcome.results] == ["MH04AB1234"]
    assert outcome.region_count == 2


def test_same_input_same_outcome(camera_params, frame) -> None:
    summaries = []
    for _ in range(2):
        store = InMemoryChallanStore()
        service = ChallanService(store, clock=make_clock())
        outcome = _pipeline(service, camera_params, [CAR_REGION, BUS_REGION], "AB12CD3456", "MH04AB1234").process_frame(
            frame
        )
        summaries.append(
            [(c.vehicle_number, c.vehicle_type, c.amount, c.dimensions) for c in store.all()]
            + [outcome.status]
        )
    assert summaries[0] == summaries[1]


def test_crop_is_clipped_to_frame() -> None:
    frame = np.ones((100, 100, 3), dtype=np.uint8)
    crop = crop_region(frame, Region(x=80, y=90, width=50, height=50, area=2500.0))
    assert crop.shape == (10, 20, 3)


def test_reference_calibration_end_to_end(frame) -> None:
    params = CameraParameters(focal_length=35, sensor_width=23.5, distance=10)
    store = InMemoryChallanStore()
    service = ChallanService(store, clock=make_clock())
    region = Region(x=20, y=20, width=70, height=35, area=2450.0)

    outcome = _pipeline(service, params, [region], "AB12CD3456").process_frame(frame)

    [result] = outcome.results
    assert result.dimensions.width == pytest.approx(20.0)
    assert result.dimensions.height == pytest.approx(10.0)
    assert result.dimensions.length == pytest.approx(50.0)
    assert result.vehicle_type is VehicleType.TRUCK
    assert store.get(result.challan_id).amount == 3000


class OCRFailingOnSecondCrop:
    def __init__(self) -> None:
        self.calls = 0

    def recognize_text(self, image):
        self.calls += 1
        if self.calls == 2:
            raise RuntimeError("CUDA out of memory")
        return f"AB12CD345{self.calls}", 0.9


def test_region_failure_keeps_other_results(service, store, camera_params, frame) -> None:
    ocr = OCRFailingOnSecondCrop()
    third = Region(x=400, y=300, width=120, height=90, area=10800.0)
    pipeline = DetectionPipeline(
        make_detector(CAR_REGION, BUS_REGION, third),
        PlateExtractor(ocr),
        service,
        camera_params,
        "Main Street No-Entry Zone",
    )

    outcome = pipeline.process_frame(frame)

    assert ocr.calls == 3
    assert outcome.status is CycleStatus.DETECTED
    assert outcome.region_count == 3
    assert [r.vehicle_number for r in outcome.results] == ["AB12CD3451", "AB12CD3453"]
    assert sorted(c.id for c in store.all()) == sorted(r.challan_id for r in outcome.results)
