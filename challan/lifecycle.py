"""Challan creation and the pending-to-paid state machine.

A challan is born ``PENDING`` either from the detection pipeline (always the
no-entry zone violation) or from an administrator's manual entry. In both
cases the amount comes from :func:`rules.fine_calculator.fine_amount`; it is
never taken from the caller. The only transition is ``PENDING -> PAID``,
driven by a payment carrying a card or wallet method. Records are never
deleted here.

Every operation returns an explicit outcome object instead of raising, so
callers in the surrounding application can show a message and carry on.
"""

from __future__ import annotations

import datetime
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional

from rules.fine_calculator import fine_amount
from .errors import StoreUnavailableError, TransitionConflictError
from .models import (
    Challan,
    ChallanStatus,
    Dimensions,
    PaymentMethod,
    VehicleType,
    ViolationType,
    utc_now,
)

logger = logging.getLogger(__name__)

AUTOMATIC_VIOLATION = ViolationType.NO_ENTRY_ZONE
SYSTEM_USER = "system"


@dataclass(frozen=True)
class CreationOutcome:
    ok: bool
    challan: Optional[Challan] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class PaymentOutcome:
    ok: bool
    challan_id: str
    challan: Optional[Challan] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class ImportOutcome:
    ok: bool
    created: int = 0
    errors: List[str] = field(default_factory=list)
    reason: Optional[str] = None


class ChallanService:
    """Create challans and apply payments against a record store.

    Parameters
    ----------
    store : ChallanStore
        Record store (external collaborator).
    audit : AuditLogger, optional
        Receives manual entries, payments and imports.
    metrics : MetricsExporter, optional
        Counts created challans and payment results.
    clock : callable, optional
        Returns the current UTC time; injectable for tests.
    """

    def __init__(self, store, audit=None, metrics=None, clock: Callable[[], datetime.datetime] = utc_now) -> None:
        self.store = store
        self.audit = audit
        self.metrics = metrics
        self.clock = clock

    # creation -----------------------------------------------------------

    def _persist(self, challan: Challan, origin: str) -> CreationOutcome:
        try:
            challan_id = self.store.create(challan)
        except StoreUnavailableError as exc:
            logger.error("Could not store %s challan for %s: %s", origin, challan.vehicle_number, exc)
            if self.metrics is not None:
                self.metrics.record_error(challan.location, "store")
            return CreationOutcome(ok=False, reason=str(exc))
        stored = challan.with_id(challan_id)
        if self.metrics is not None:
            self.metrics.record_challan(origin)
        logger.info(
            "Challan %s issued (%s): %s %s at %s, amount %d",
            challan_id,
            origin,
            stored.vehicle_type.value,
            stored.vehicle_number,
            stored.location,
            stored.amount,
        )
        return CreationOutcome(ok=True, challan=stored)

    def issue_automatic(
        self,
        vehicle_number: str,
        vehicle_type: VehicleType,
        location: str,
        dimensions: Optional[Dimensions] = None,
        user_id: str = SYSTEM_USER,
    ) -> CreationOutcome:
        """Create the challan for a vehicle seen in the no-entry zone."""
        challan = Challan(
            vehicle_number=vehicle_number,
            vehicle_type=vehicle_type,
            violation_type=AUTOMATIC_VIOLATION,
            location=location,
            amount=fine_amount(AUTOMATIC_VIOLATION, vehicle_type),
            user_id=user_id,
            timestamp=self.clock(),
            dimensions=dimensions,
        )
        return self._persist(challan, "automatic")

    def issue_manual(
        self,
        vehicle_number: str,
        vehicle_type: VehicleType | str,
        violation_type: ViolationType | str,
        location: str,
        user_id: str,
    ) -> CreationOutcome:
        """Create a challan from an administrator's entry.

        ``vehicle_type`` and ``violation_type`` may be given as enum values
        (``"Car"``, ``"speeding"``); unknown values fail the entry.
        """
        number = " ".join(vehicle_number.upper().split())
        if not number:
            return CreationOutcome(ok=False, reason="vehicle number is required")
        if not location.strip():
            return CreationOutcome(ok=False, reason="location is required")
        try:
            vtype = VehicleType(vehicle_type)
            violation = ViolationType(violation_type)
        except ValueError as exc:
            return CreationOutcome(ok=False, reason=str(exc))
        challan = Challan(
            vehicle_number=number,
            vehicle_type=vtype,
            violation_type=violation,
            location=location.strip(),
            amount=fine_amount(violation, vtype),
            user_id=user_id,
            timestamp=self.clock(),
        )
        outcome = self._persist(challan, "manual")
        if outcome.ok and self.audit is not None:
            self.audit.log_action("manual_challan", outcome.challan.to_dict())
        return outcome

    # payment ------------------------------------------------------------

    def _check_payable(self, challan_id: str) -> Challan:
        current = self.store.get(challan_id)
        if current is None:
            raise TransitionConflictError(challan_id, "not found")
        if current.status is not ChallanStatus.PENDING:
            raise TransitionConflictError(challan_id, "already paid")
        return current

    def pay(self, challan_id: str, method: PaymentMethod | str) -> PaymentOutcome:
        """Move a pending challan to paid.

        Fails for unknown ids, already-paid challans, unknown payment
        methods and store errors. A failed payment never changes the record.
        """
        try:
            method = PaymentMethod(method)
        except ValueError:
            return self._payment_failed(challan_id, f"unsupported payment method {method!r}")
        try:
            current = self._check_payable(challan_id)
            paid_at = self.clock()
            if not self.store.update_status(challan_id, method, paid_at):
                # lost the race against a concurrent payment
                raise TransitionConflictError(challan_id, "already paid")
        except TransitionConflictError as exc:
            return self._payment_failed(challan_id, exc.reason)
        except StoreUnavailableError as exc:
            return self._payment_failed(challan_id, str(exc))

        # the compare-and-set succeeded; from here on the payment stands
        paid = current.mark_paid(method, paid_at)

        if self.metrics is not None:
            self.metrics.record_payment("paid")
        if self.audit is not None:
            self.audit.log_action(
                "payment",
                {"challan_id": challan_id, "method": method.value, "paid_at": paid_at.isoformat()},
            )
        logger.info("Challan %s paid by %s", challan_id, method.value)
        return PaymentOutcome(ok=True, challan_id=challan_id, challan=paid)

    def _payment_failed(self, challan_id: str, reason: str) -> PaymentOutcome:
        logger.warning("Payment for challan %s rejected: %s", challan_id, reason)
        if self.metrics is not None:
            self.metrics.record_payment("rejected")
        return PaymentOutcome(ok=False, challan_id=challan_id, reason=reason)

    # queries ------------------------------------------------------------

    def history(
        self,
        user_id: Optional[str] = None,
        status: Optional[ChallanStatus | str] = None,
        vehicle_type: Optional[VehicleType | str] = None,
        search: Optional[str] = None,
    ) -> List[Challan]:
        """Return challans matching all given filters, newest first.

        ``search`` is a case-insensitive substring of the vehicle number or
        the location.
        """
        status = ChallanStatus(status) if status is not None else None
        vehicle_type = VehicleType(vehicle_type) if vehicle_type is not None else None
        needle = search.lower() if search else None

        def matches(c: Challan) -> bool:
            if user_id is not None and c.user_id != user_id:
                return False
            if status is not None and c.status is not status:
                return False
            if vehicle_type is not None and c.vehicle_type is not vehicle_type:
                return False
            if needle and needle not in c.vehicle_number.lower() and needle not in c.location.lower():
                return False
            return True

        return self.store.query(matches)

    def pending_challans(self, user_id: str) -> List[Challan]:
        return self.history(user_id=user_id, status=ChallanStatus.PENDING)

    # legacy import ------------------------------------------------------


    @staticmethod
    def _legacy_entry(entry: Any, user_id: str) -> Challan:
        if not isinstance(entry, dict):
            raise ValueError(f"expected an object, got {type(entry).__name__}")
        number = str(entry["vehicleNo"]).strip()
        if not number:
            raise ValueError("vehicleNo is empty")
        when = datetime.datetime.fromisoformat(str(entry["time"]).replace("Z", "+00:00"))
        if when.tzinfo is None:
            when = when.replace(tzinfo=datetime.timezone.utc)
        paid = bool(entry.get("paid"))
        return Challan(
            vehicle_number=number,
            vehicle_type=VehicleType.CAR,
            violation_type=AUTOMATIC_VIOLATION,
            location="Unknown",
            amount=int(entry["charge"]),
            user_id=user_id,
            status=ChallanStatus.PAID if paid else ChallanStatus.PENDING,
            timestamp=when,
            paid_at=when if paid else None,
            payment_method=PaymentMethod.WALLET if paid else None,
        )

    def import_legacy(self, path: str | Path, user_id: str) -> ImportOutcome:
        """Load historical challans from a JSON list.

        Each entry has ``vehicleNo``, ``charge``, ``paid`` and ``time``. The
        recorded charge is kept as the amount because these are historical
        fines, not new ones. Paid entries are stored as paid by wallet at
        their recorded time.

        Every entry is validated before anything is written: one malformed
        entry rejects the whole file. A store failure part-way through stops
        the import and is reported with the number of records already
        created.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                entries = json.load(f)
        except (OSError, ValueError) as exc:
            logger.error("Cannot read legacy challans from %s: %s", path, exc)
            return ImportOutcome(ok=False, reason=f"cannot read {path}: {exc}")
        if not isinstance(entries, list):
            return ImportOutcome(ok=False, reason="expected a JSON list of challans")

        challans: List[Challan] = []
        errors: List[str] = []
        for index, entry in enumerate(entries):
            try:
                challans.append(self._legacy_entry(entry, user_id))
            except (KeyError, TypeError, ValueError) as exc:
                errors.append(f"entry {index}: {exc!r}")
        if errors:
            logger.error("Legacy import from %s rejected, %d invalid entries", path, len(errors))
            return ImportOutcome(ok=False, errors=errors, reason=f"{len(errors)} invalid entries")

        created = 0
        reason = None
        for challan in challans:
            try:
                self.store.create(challan)
            except StoreUnavailableError as exc:
                reason = str(exc)
                logger.error("Legacy import from %s stopped after %d records: %s", path, created, exc)
                break
            created += 1
        if self.audit is not None:
            self.audit.log_action(
                "legacy_import",
                {"path": str(path), "user_id": user_id, "count": created, "error": reason},
            )
        if reason is not None:
            return ImportOutcome(ok=False, created=created, reason=reason)
        logger.info("Imported %d legacy challans from %s", created, path)
        return ImportOutcome(ok=True, created=created)
