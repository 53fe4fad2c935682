"""Ordered threshold rules mapping estimated dimensions to a vehicle type.

Rules are evaluated top to bottom and the first one whose limits are all
satisfied wins. Limits are strict upper bounds, so a width of exactly 1.3
falls through the motorcycle rule. The order matters at the boundaries and
must not be changed; the last rule has no limits and catches everything
that is larger than a bus (or physically implausible).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from challan.models import Dimensions, VehicleType


@dataclass(frozen=True)
class ClassificationRule:
    """Upper bounds for one vehicle type. ``None`` means unbounded."""

    vehicle_type: VehicleType
    max_width: Optional[float] = None
    max_height: Optional[float] = None
    max_length: Optional[float] = None

    def matches(self, dims: Dimensions) -> bool:
        for limit, value in (
            (self.max_width, dims.width),
            (self.max_height, dims.height),
            (self.max_length, dims.length),
        ):
            if limit is not None and not value < limit:
                return False
        return True


DEFAULT_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(VehicleType.MOTORCYCLE, max_width=1.3, max_length=2.5),
    ClassificationRule(VehicleType.CAR, max_width=2.0, max_height=1.8, max_length=5.0),
    ClassificationRule(VehicleType.VAN, max_width=2.3, max_height=2.5, max_length=6.0),
    ClassificationRule(VehicleType.BUS, max_width=2.6, max_height=3.5, max_length=12.0),
    ClassificationRule(VehicleType.TRUCK),
)


class VehicleClassifier:
    """Evaluate classification rules in order.

    Parameters
    ----------
    rules : tuple of ClassificationRule, optional
        Rules in priority order. The final rule must be unbounded so that
        every input maps to exactly one type.
    """

    def __init__(self, rules: Tuple[ClassificationRule, ...] = DEFAULT_RULES) -> None:
        if not rules:
            raise ValueError("VehicleClassifier needs at least one rule")
        last = rules[-1]
        if (last.max_width, last.max_height, last.max_length) != (None, None, None):
            raise ValueError("The last classification rule must be a catch-all")
        self.rules = tuple(rules)

    def classify(self, dims: Dimensions) -> VehicleType:
        for rule in self.rules:
            if rule.matches(dims):
                return rule.vehicle_type
        # unreachable: the catch-all always matches
        return self.rules[-1].vehicle_type


_default_classifier = VehicleClassifier()


def classify_vehicle(dims: Dimensions) -> VehicleType:
    """Classify with the default rule table."""
    return _default_classifier.classify(dims)
