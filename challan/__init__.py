"""Challan records: data model, errors and the payment lifecycle."""

from .errors import (
    CameraUnavailableError,
    ChallanError,
    StoreUnavailableError,
    TransitionConflictError,
)
from .models import (
    CameraParameters,
    Challan,
    ChallanStatus,
    DetectionResult,
    Dimensions,
    PaymentMethod,
    Region,
    Statistics,
    VehicleType,
    ViolationType,
)

__all__ = [
    "CameraParameters",
    "CameraUnavailableError",
    "Challan",
    "ChallanError",
    "ChallanStatus",
    "DetectionResult",
    "Dimensions",
    "PaymentMethod",
    "Region",
    "Statistics",
    "StoreUnavailableError",
    "TransitionConflictError",
    "VehicleType",
    "ViolationType",
]
