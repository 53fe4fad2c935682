"""Fine lookup tables and the additive fine calculation.

Each member of :class:`~challan.models.ViolationType` and
:class:`~challan.models.VehicleType` has exactly one tariff entry. The fine
for a challan is the violation amount plus the vehicle base amount:

    amount(v, t) = VIOLATION_TARIFFS[v].amount + VEHICLE_TARIFFS[t].base_amount

The tables are fixed data. A challan stores the computed amount at creation,
so later edits to these tables never change existing records.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Type

from challan.models import VehicleType, ViolationType


@dataclass(frozen=True)
class ViolationTariff:
    amount: int
    description: str


@dataclass(frozen=True)
class VehicleTariff:
    base_amount: int
    description: str


VIOLATION_TARIFFS: Mapping[ViolationType, ViolationTariff] = MappingProxyType({
    ViolationType.NO_ENTRY_ZONE: ViolationTariff(500, "No-Entry Zone Violation"),
    ViolationType.SPEEDING: ViolationTariff(1000, "Over Speeding"),
    ViolationType.RED_LIGHT: ViolationTariff(1000, "Red Light Jump"),
    ViolationType.NO_PARKING: ViolationTariff(300, "Parking in No-Parking Zone"),
    ViolationType.WRONG_WAY: ViolationTariff(1500, "Driving on the Wrong Side"),
})

VEHICLE_TARIFFS: Mapping[VehicleType, VehicleTariff] = MappingProxyType({
    VehicleType.MOTORCYCLE: VehicleTariff(500, "Two-wheeler"),
    VehicleType.CAR: VehicleTariff(1000, "Car / SUV"),
    VehicleType.VAN: VehicleTariff(1500, "Van / Light commercial vehicle"),
    VehicleType.BUS: VehicleTariff(2000, "Bus"),
    VehicleType.TRUCK: VehicleTariff(2500, "Truck / Heavy goods vehicle"),
})


def _check_exhaustive(table: Mapping, enum_cls: Type[Enum]) -> None:
    missing = [member.value for member in enum_cls if member not in table]
    if missing:
        raise RuntimeError(f"Tariff table for {enum_cls.__name__} is missing: {', '.join(missing)}")


_check_exhaustive(VIOLATION_TARIFFS, ViolationType)
_check_exhaustive(VEHICLE_TARIFFS, VehicleType)


def fine_amount(violation_type: ViolationType, vehicle_type: VehicleType) -> int:
    """Return the fine for a violation committed by a vehicle type."""
    violation = VIOLATION_TARIFFS[ViolationType(violation_type)]
    vehicle = VEHICLE_TARIFFS[VehicleType(vehicle_type)]
    return violation.amount + vehicle.base_amount


def violation_description(violation_type: ViolationType) -> str:
    return VIOLATION_TARIFFS[ViolationType(violation_type)].description


def vehicle_description(vehicle_type: VehicleType) -> str:
    return VEHICLE_TARIFFS[VehicleType(vehicle_type)].description


def all_violation_types() -> List[ViolationType]:
    return list(VIOLATION_TARIFFS)


def all_vehicle_types() -> List[VehicleType]:
    return list(VEHICLE_TARIFFS)
