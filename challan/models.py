"""Data model shared by the detection pipeline and the challan lifecycle.

Everything here is a plain value object. Pixel-space types (``Region``) come
out of the region detector, real-world types (``Dimensions``) out of the
dimension estimator, and ``Challan`` is the persisted violation record. The
two lookup enums (``VehicleType`` and ``ViolationType``) are closed sets; the
amounts and descriptions attached to them live in
:mod:`rules.fine_calculator`.
"""

from __future__ import annotations

import datetime
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional


class VehicleType(str, Enum):
    MOTORCYCLE = "Motorcycle"
    CAR = "Car"
    VAN = "Van"
    BUS = "Bus"
    TRUCK = "Truck"


class ViolationType(str, Enum):
    NO_ENTRY_ZONE = "no_entry_zone"
    SPEEDING = "speeding"
    RED_LIGHT = "red_light"
    NO_PARKING = "no_parking"
    WRONG_WAY = "wrong_way"


class ChallanStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class PaymentMethod(str, Enum):
    CARD = "card"
    WALLET = "wallet"


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass(frozen=True)
class CameraParameters:
    """Pinhole calibration used to turn pixel extents into real sizes.

    Parameters
    ----------
    focal_length : float
        Focal length, in the same unit family as ``distance``.
    sensor_width : float
        Physical sensor width. Carried for calibration records; the
        estimator itself only needs ``focal_length`` and ``distance``.
    distance : float
        Distance from the camera to the monitored lane.
    """

    focal_length: float
    sensor_width: float
    distance: float

    def __post_init__(self) -> None:
        for name in ("focal_length", "sensor_width", "distance"):
            value = getattr(self, name)
            if not (isinstance(value, (int, float)) and math.isfinite(value) and value > 0):
                raise ValueError(f"CameraParameters.{name} must be a positive number, got {value!r}")


@dataclass(frozen=True)
class Region:
    """Axis-aligned bounding box of a vehicle candidate in pixels."""

    x: int
    y: int
    width: int
    height: int
    area: float

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def as_xyxy(self) -> tuple[int, int, int, int]:
        return self.x, self.y, self.x + self.width, self.y + self.height


@dataclass(frozen=True)
class Dimensions:
    """Estimated real-world size of a vehicle."""

    width: float
    height: float
    length: float

    def to_dict(self) -> Dict[str, float]:
        return {"width": self.width, "height": self.height, "length": self.length}


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of one successfully resolved region in a capture cycle."""

    vehicle_number: str
    vehicle_type: VehicleType
    dimensions: Dimensions
    confidence: float
    region: Optional[Region] = None
    challan_id: Optional[str] = None


@dataclass(frozen=True)
class Challan:
    """A persisted violation record.

    ``id`` is ``None`` until the record store assigns one. ``amount`` is fixed
    when the record is built and is never recomputed. ``paid_at`` and
    ``payment_method`` are set exactly when ``status`` is ``PAID``.
    """

    vehicle_number: str
    vehicle_type: VehicleType
    violation_type: ViolationType
    location: str
    amount: int
    user_id: str
    status: ChallanStatus = ChallanStatus.PENDING
    timestamp: datetime.datetime = field(default_factory=utc_now)
    paid_at: Optional[datetime.datetime] = None
    payment_method: Optional[PaymentMethod] = None
    dimensions: Optional[Dimensions] = None
    id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"Challan amount must be non-negative, got {self.amount}")
        paid = self.status is ChallanStatus.PAID
        if paid != (self.paid_at is not None) or paid != (self.payment_method is not None):
            raise ValueError("paid_at and payment_method must be set exactly when status is paid")

    @property
    def is_paid(self) -> bool:
        return self.status is ChallanStatus.PAID

    def with_id(self, challan_id: str) -> "Challan":
        return replace(self, id=challan_id)

    def mark_paid(self, method: PaymentMethod, paid_at: datetime.datetime) -> "Challan":
        """Return the paid copy of this record.

        The caller (the record store) is responsible for making sure the
        stored record was still pending when this copy replaces it.
        """
        return replace(self, status=ChallanStatus.PAID, paid_at=paid_at, payment_method=method)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "vehicle_number": self.vehicle_number,
            "vehicle_type": self.vehicle_type.value,
            "violation_type": self.violation_type.value,
            "location": self.location,
            "amount": self.amount,
            "user_id": self.user_id,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
            "payment_method": self.payment_method.value if self.payment_method else None,
            "dimensions": self.dimensions.to_dict() if self.dimensions else None,
        }


@dataclass
class Statistics:
    """Aggregate view over the whole record set."""

    total_challans: int = 0
    pending_challans: int = 0
    paid_challans: int = 0
    total_revenue: int = 0
    violation_stats: Dict[ViolationType, int] = field(
        default_factory=lambda: {v: 0 for v in ViolationType}
    )
    vehicle_type_stats: Dict[VehicleType, int] = field(
        default_factory=lambda: {t: 0 for t in VehicleType}
    )
