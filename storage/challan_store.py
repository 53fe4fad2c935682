"""Challan record stores.

The pipeline treats persistence as an external collaborator with four
operations: ``create`` (store assigns the id), ``get``, ``update_status``
(the pending-to-paid compare-and-set) and ``subscribe`` (push the current
record set to a callback now and after every change). ``ChallanStore``
implements the subscription plumbing; concrete stores implement the four
storage primitives.

Two stores ship with the project: :class:`InMemoryChallanStore` below and
the SQLite-backed store in :mod:`storage.sqlite_store`.
"""

from __future__ import annotations

import datetime
import logging
import threading
import uuid
from typing import Callable, Dict, List, Optional, Tuple

from challan.errors import StoreUnavailableError
from challan.models import Challan, ChallanStatus, PaymentMethod

logger = logging.getLogger(__name__)

Predicate = Callable[[Challan], bool]
Subscriber = Callable[[List[Challan]], None]


def new_challan_id() -> str:
    return f"CH-{uuid.uuid4().hex[:10].upper()}"


class ChallanStore:
    """Base class for record stores.

    Subclasses implement :meth:`_insert`, :meth:`get`, :meth:`_mark_paid`
    and :meth:`query`. Change notification is handled here: every
    successful ``create`` or ``update_status`` pushes a fresh snapshot to
    all subscribers. Snapshots are taken and delivered under one lock, so a
    subscriber never receives an older snapshot after a newer one.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[int, Tuple[Subscriber, Optional[Predicate]]] = {}
        self._next_token = 0
        self._notify_lock = threading.RLock()

    # storage primitives -------------------------------------------------

    def _insert(self, challan: Challan) -> str:
        raise NotImplementedError

    def _mark_paid(self, challan_id: str, method: PaymentMethod, paid_at: datetime.datetime) -> bool:
        raise NotImplementedError

    def get(self, challan_id: str) -> Optional[Challan]:
        raise NotImplementedError

    def query(self, predicate: Optional[Predicate] = None) -> List[Challan]:
        """Return matching records, newest first."""
        raise NotImplementedError

    # public operations --------------------------------------------------

    def create(self, challan: Challan) -> str:
        """Persist a record without an id and return the assigned id."""
        if challan.id is not None:
            raise ValueError("create() expects a challan without an id")
        challan_id = self._insert(challan)
        self._notify()
        return challan_id

    def update_status(self, challan_id: str, method: PaymentMethod, paid_at: datetime.datetime) -> bool:
        """Move a pending record to paid.

        Returns ``False`` when the record does not exist or is no longer
        pending. Of two concurrent calls for the same id at most one
        returns ``True``.
        """
        updated = self._mark_paid(challan_id, method, paid_at)
        if updated:
            self._notify()
        return updated

    def subscribe(self, callback: Subscriber, predicate: Optional[Predicate] = None) -> Callable[[], None]:
        """Register ``callback`` for record-set snapshots.

        The callback is invoked immediately with the current (filtered)
        record set and again after every change. Returns a function that
        removes the subscription.
        """
        with self._notify_lock:
            token = self._next_token
            self._next_token += 1
            self._subscribers[token] = (callback, predicate)
            self._deliver(callback, predicate)

        def unsubscribe() -> None:
            with self._notify_lock:
                self._subscribers.pop(token, None)

        return unsubscribe

    def all(self) -> List[Challan]:
        return self.query()

    def _notify(self) -> None:
        with self._notify_lock:
            for callback, predicate in list(self._subscribers.values()):
                self._deliver(callback, predicate)

    def _deliver(self, callback: Subscriber, predicate: Optional[Predicate]) -> None:
        try:
            snapshot = self.query(predicate)
        except StoreUnavailableError:
            logger.exception("Could not read record set for subscriber")
            return
        try:
            callback(snapshot)
        except Exception:
            logger.exception("Challan subscriber %r failed", callback)


class InMemoryChallanStore(ChallanStore):
    """Dictionary-backed store, for tests and single-process deployments."""

    def __init__(self) -> None:
        super().__init__()
        self._lock = threading.Lock()
        self._records: Dict[str, Challan] = {}

    def _insert(self, challan: Challan) -> str:
        with self._lock:
            challan_id = new_challan_id()
            while challan_id in self._records:
                challan_id = new_challan_id()
            self._records[challan_id] = challan.with_id(challan_id)
        return challan_id

    def _mark_paid(self, challan_id: str, method: PaymentMethod, paid_at: datetime.datetime) -> bool:
        with self._lock:
            current = self._records.get(challan_id)
            if current is None or current.status is not ChallanStatus.PENDING:
                return False
            self._records[challan_id] = current.mark_paid(method, paid_at)
            return True

    def get(self, challan_id: str) -> Optional[Challan]:
        with self._lock:
            return self._records.get(challan_id)

    def query(self, predicate: Optional[Predicate] = None) -> List[Challan]:
        with self._lock:
            records = list(self._records.values())
        if predicate is not None:
            records = [c for c in records if predicate(c)]
        records.sort(key=lambda c: c.timestamp, reverse=True)
        return records
