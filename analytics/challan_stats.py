"""Challan statistics.

Statistics are always derived from the complete record set. The aggregator
subscribes to the record store and rebuilds the whole aggregate on every
change notification instead of applying increments, so the figures can
never drift from what a full scan of the store would give.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Callable, Iterable, Optional

from challan.models import Challan, ChallanStatus, Statistics

logger = logging.getLogger(__name__)


def compute_statistics(challans: Iterable[Challan]) -> Statistics:
    """Scan ``challans`` once and return the aggregate."""
    stats = Statistics()
    for challan in challans:
        stats.total_challans += 1
        if challan.status is ChallanStatus.PAID:
            stats.paid_challans += 1
            stats.total_revenue += challan.amount
        else:
            stats.pending_challans += 1
        stats.violation_stats[challan.violation_type] += 1
        stats.vehicle_type_stats[challan.vehicle_type] += 1
    return stats


class StatisticsAggregator:
    """Keep a :class:`Statistics` snapshot in sync with a record store.

    Parameters
    ----------
    store : ChallanStore
        Store to subscribe to. The store pushes the full record set to the
        aggregator right away and after every change.
    """

    def __init__(self, store) -> None:
        self._lock = threading.Lock()
        self._stats = Statistics()
        self._unsubscribe: Optional[Callable[[], None]] = store.subscribe(self._on_change)

    def _on_change(self, challans: list[Challan]) -> None:
        stats = compute_statistics(challans)
        with self._lock:
            self._stats = stats
        logger.debug(
            "Statistics recomputed: total=%d pending=%d paid=%d revenue=%d",
            stats.total_challans,
            stats.pending_challans,
            stats.paid_challans,
            stats.total_revenue,
        )

    def current(self) -> Statistics:
        """Return a copy of the latest aggregate; callers may mutate it freely."""
        with self._lock:
            stats = self._stats
        return replace(
            stats,
            violation_stats=dict(stats.violation_stats),
            vehicle_type_stats=dict(stats.vehicle_type_stats),
        )

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
