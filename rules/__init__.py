"""Rules package.

Fixed tables that decide what a detection costs: the ordered dimension
rules that classify a vehicle and the tariffs that price a violation for a
vehicle type.
"""

from .fine_calculator import (
    all_vehicle_types,
    all_violation_types,
    fine_amount,
    vehicle_description,
    violation_description,
)
from .vehicle_classifier import ClassificationRule, VehicleClassifier, classify_vehicle

__all__ = [
    "ClassificationRule",
    "VehicleClassifier",
    "all_vehicle_types",
    "all_violation_types",
    "classify_vehicle",
    "fine_amount",
    "vehicle_description",
    "violation_description",
]
