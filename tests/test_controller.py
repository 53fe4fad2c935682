from __future__ import annotations

import pytest

from capture.controller import EnforcementController
from capture.pipeline import CycleStatus
from challan.errors import CameraUnavailableError
from challan.models import ChallanStatus, PaymentMethod, Region, VehicleType
from conftest import FakeCamera, make_detector, make_extractor

REGION = Region(x=10, y=10, width=210, height=200, area=42000.0)


@pytest.fixture
def controller(service, camera_params):
    controller = EnforcementController(
        service,
        make_detector(REGION),
        make_extractor("AB12CD3456"),
        camera_params,
        camera_factory=FakeCamera,
        interval=5.0,
    )
    yield controller
    controller.close()


def test_manual_frame_without_session(controller, frame) -> None:
    outcome = controller.capture_once(frame)
    assert outcome.status is CycleStatus.DETECTED
    [result] = outcome.results
    assert result.vehicle_type is VehicleType.VAN
    stats = controller.current_statistics()
    assert stats.total_challans == 1
    assert stats.pending_challans == 1


def test_capture_without_frame_or_session(controller) -> None:
    assert controller.capture_once().status is CycleStatus.NO_FRAME


def test_session_capture_uses_camera(controller) -> None:
    session = controller.start_session("School Zone")
    assert controller.active
    outcome = controller.capture_once()
    assert outcome.status is CycleStatus.DETECTED
    assert controller.challan_history()[0].location == "School Zone"
    controller.stop_session()
    assert not controller.active
    assert session.camera.released


def test_unknown_location_rejected(controller) -> None:
    with pytest.raises(ValueError):
        controller.start_session("Airport")
    assert not controller.active


def test_second_session_rejected(controller) -> None:
    controller.start_session()
    with pytest.raises(RuntimeError):
        controller.start_session()


def test_camera_unavailable(service, camera_params) -> None:
    controller = EnforcementController(
        service,
        make_detector(REGION),
        make_extractor("AB12CD3456"),
        camera_params,
        camera_factory=lambda: FakeCamera(fail_open=True),
    )
    with pytest.raises(CameraUnavailableError):
        controller.start_session()
    assert not controller.active


def test_pay_and_statistics(controller, frame) -> None:
    result = controller.capture_once(frame).results[0]
    outcome = controller.pay_challan(result.challan_id, PaymentMethod.WALLET)
    assert outcome.ok
    assert outcome.challan.status is ChallanStatus.PAID
    stats = controller.current_statistics()
    assert stats.paid_challans == 1
    assert stats.total_revenue == 2000
    assert not controller.pay_challan(result.challan_id, PaymentMethod.CARD).ok


def test_manual_challan_and_history(controller) -> None:
    outcome = controller.issue_manual_challan("MH04AB1234", "Motorcycle", "no_parking", "School Zone", "admin")
    assert outcome.ok
    assert outcome.challan.amount == 800
    assert controller.pending_challans("admin") == [outcome.challan]
    assert controller.challan_history(search="mh04") == [outcome.challan]
