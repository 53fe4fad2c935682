from __future__ import annotations

import datetime
import json
from pathlib import Path

import pytest

from challan.errors import StoreUnavailableError
from challan.lifecycle import ChallanService
from challan.models import Challan, ChallanStatus, PaymentMethod, VehicleType, ViolationType
from storage import InMemoryChallanStore
from conftest import make_clock


def _write(tmp_path, entries) -> Path:
    path = tmp_path / "challans.json"
    path.write_text(json.dumps(entries), encoding="utf-8")
    return path


def test_import_legacy_records(service, store, audit, tmp_path) -> None:
    path = _write(
        tmp_path,
        [
            {"vehicleNo": "AB12CD3456", "charge": 750, "paid": False, "time": "2023-05-01T10:00:00Z"},
            {"vehicleNo": "MH04AB1234", "charge": 1200, "paid": True, "time": "2023-05-02T11:30:00"},
        ],
    )

    outcome = service.import_legacy(path, "alice")
    assert outcome.ok
    assert outcome.created == 2

    records = {c.vehicle_number: c for c in store.all()}
    pending = records["AB12CD3456"]
    assert pending.status is ChallanStatus.PENDING
    assert pending.amount == 750
    assert pending.vehicle_type is VehicleType.CAR
    assert pending.violation_type is ViolationType.NO_ENTRY_ZONE
    assert pending.location == "Unknown"
    assert pending.user_id == "alice"
    assert pending.timestamp == datetime.datetime(2023, 5, 1, 10, 0, tzinfo=datetime.timezone.utc)

    paid = records["MH04AB1234"]
    assert paid.status is ChallanStatus.PAID
    assert paid.payment_method is PaymentMethod.WALLET
    assert paid.paid_at == paid.timestamp
    assert paid.amount == 1200

    assert audit.read_actions()[-1]["details"]["count"] == 2


@pytest.mark.parametrize(
    "bad_entry",
    [
        {"charge": 500, "paid": False, "time": "2023-05-01T10:00:00Z"},
        {"vehicleNo": "KA01XY0001", "charge": -5, "paid": False, "time": "2023-05-01T10:00:00Z"},
        {"vehicleNo": "KA01XY0001", "charge": "a lot", "paid": False, "time": "2023-05-01T10:00:00Z"},
        {"vehicleNo": "KA01XY0001", "charge": 500, "paid": False, "time": "yesterday"},
        "KA01XY0001",
    ],
)
def test_invalid_entry_rejects_whole_file(service, store, tmp_path, bad_entry) -> None:
    path = _write(
        tmp_path,
        [{"vehicleNo": "AB12CD3456", "charge": 750, "paid": False, "time": "2023-05-01T10:00:00Z"}, bad_entry],
    )
    outcome = service.import_legacy(path, "alice")
    assert not outcome.ok
    assert outcome.created == 0
    assert len(outcome.errors) == 1
    assert outcome.errors[0].startswith("entry 1:")
    assert store.all() == []


def test_unreadable_file(service, tmp_path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    assert not service.import_legacy(path, "alice").ok
    assert not service.import_legacy(tmp_path / "missing.json", "alice").ok


class FlakyStore(InMemoryChallanStore):
    """Accepts ``capacity`` records, then reports the backend as down."""

    def __init__(self, capacity: int) -> None:
        super().__init__()
        self.capacity = capacity

    def _insert(self, challan: Challan) -> str:
        if self.capacity <= 0:
            raise StoreUnavailableError("database is locked")
        self.capacity -= 1
        return super()._insert(challan)


def test_store_failure_reports_partial_count(audit, tmp_path) -> None:
    service = ChallanService(FlakyStore(capacity=1), audit=audit, clock=make_clock())
    path = _write(
        tmp_path,
        [
            {"vehicleNo": "AB12CD3456", "charge": 750, "paid": False, "time": "2023-05-01T10:00:00Z"},
            {"vehicleNo": "MH04AB1234", "charge": 1200, "paid": True, "time": "2023-05-02T11:30:00Z"},
        ],
    )
    outcome = service.import_legacy(path, "alice")
    assert not outcome.ok
    assert outcome.created == 1
    assert "database is locked" in outcome.reason
    details = audit.read_actions()[-1]["details"]
    assert details["count"] == 1
    assert details["error"] == "database is locked"
