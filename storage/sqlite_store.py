"""SQLite challan store.

Persists challans in a single ``challans`` table so records survive restarts
and can be queried by the surrounding application. The table is created on
first use. The pending-to-paid transition is a conditional ``UPDATE ...
WHERE status = 'pending'``; SQLite serialises writers, so only the first of
two concurrent payments for one challan changes a row.

Usage
-----
```
from storage.sqlite_store import SQLiteChallanStore
store = SQLiteChallanStore(db_path="challans.db")
challan_id = store.create(challan)
```
"""

from __future__ import annotations

import datetime
import json
import sqlite3
import threading
from pathlib import Path
from typing import List, Optional, Tuple

from challan.errors import StoreUnavailableError
from challan.models import (
    Challan,
    ChallanStatus,
    Dimensions,
    PaymentMethod,
    VehicleType,
    ViolationType,
)
from .challan_store import ChallanStore, Predicate, new_challan_id


class SQLiteChallanStore(ChallanStore):
    """Persist challans to a SQLite database."""

    def __init__(self, db_path: str | Path) -> None:
        super().__init__()
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        try:
            # one connection shared by the capture worker and API callers
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._create_table()
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"Cannot open challan database {self.db_path}: {exc}") from exc

    def _create_table(self) -> None:
        cur = self.conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS challans (
                id TEXT PRIMARY KEY,
                vehicle_number TEXT NOT NULL,
                vehicle_type TEXT NOT NULL,
                violation_type TEXT NOT NULL,
                location TEXT NOT NULL,
                amount INTEGER NOT NULL,
                user_id TEXT NOT NULL,
                status TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                paid_at TEXT,
                payment_method TEXT,
                dimensions TEXT
            )
            """
        )
        self.conn.commit()

    def _execute(self, sql: str, params: tuple = ()) -> Tuple[List[tuple], int]:
        """Run one statement and return (rows, rowcount)."""
        with self._lock:
            try:
                cur = self.conn.execute(sql, params)
                rows = cur.fetchall()
                self.conn.commit()
                return rows, cur.rowcount
            except sqlite3.Error as exc:
                self.conn.rollback()
                raise StoreUnavailableError(f"Challan database error: {exc}") from exc

    def _insert(self, challan: Challan) -> str:
        challan_id = new_challan_id()
        dims_json = json.dumps(challan.dimensions.to_dict()) if challan.dimensions else None
        self._execute(
            "INSERT INTO challans (id, vehicle_number, vehicle_type, violation_type, location, amount, "
            "user_id, status, timestamp, paid_at, payment_method, dimensions) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                challan_id,
                challan.vehicle_number,
                challan.vehicle_type.value,
                challan.violation_type.value,
                challan.location,
                challan.amount,
                challan.user_id,
                challan.status.value,
                challan.timestamp.isoformat(),
                challan.paid_at.isoformat() if challan.paid_at else None,
                challan.payment_method.value if challan.payment_method else None,
                dims_json,
            ),
        )
        return challan_id

    def _mark_paid(self, challan_id: str, method: PaymentMethod, paid_at: datetime.datetime) -> bool:
        _, rowcount = self._execute(
            "UPDATE challans SET status = ?, paid_at = ?, payment_method = ? WHERE id = ? AND status = ?",
            (ChallanStatus.PAID.value, paid_at.isoformat(), method.value, challan_id, ChallanStatus.PENDING.value),
        )
        return rowcount == 1

    @staticmethod
    def _row_to_challan(row: tuple) -> Challan:
        (
            challan_id,
            vehicle_number,
            vehicle_type,
            violation_type,
            location,
            amount,
            user_id,
            status,
            timestamp,
            paid_at,
            payment_method,
            dims_json,
        ) = row
        return Challan(
            id=challan_id,
            vehicle_number=vehicle_number,
            vehicle_type=VehicleType(vehicle_type),
            violation_type=ViolationType(violation_type),
            location=location,
            amount=int(amount),
            user_id=user_id,
            status=ChallanStatus(status),
            timestamp=datetime.datetime.fromisoformat(timestamp),
            paid_at=datetime.datetime.fromisoformat(paid_at) if paid_at else None,
            payment_method=PaymentMethod(payment_method) if payment_method else None,
            dimensions=Dimensions(**json.loads(dims_json)) if dims_json else None,
        )

    def get(self, challan_id: str) -> Optional[Challan]:
        rows, _ = self._execute("SELECT * FROM challans WHERE id = ?", (challan_id,))
        return self._row_to_challan(rows[0]) if rows else None

    def query(self, predicate: Optional[Predicate] = None) -> List[Challan]:
        rows, _ = self._execute("SELECT * FROM challans ORDER BY timestamp DESC")
        records = [self._row_to_challan(row) for row in rows]
        if predicate is not None:
            records = [c for c in records if predicate(c)]
        return records

    def close(self) -> None:
        with self._lock:
            self.conn.close()
