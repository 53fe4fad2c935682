"""Audit trail for administrative challan actions.

Manual challan entry, payments and legacy imports change the record set
outside the automatic detection path, so each of them is appended to an
``audit.jsonl`` file with a UTC timestamp. Detection cycles are not audited
here; they go to the regular application log.
"""

from __future__ import annotations

import datetime
import json
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional


class AuditLogger:
    """Append administrative actions to a JSONL file."""

    def __init__(self, log_dir: Optional[str | Path] = None) -> None:
        self.log_dir = Path(log_dir) if log_dir else Path("logs")
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = self.log_dir / "audit.jsonl"
        self._lock = threading.Lock()

    def log_action(self, action_type: str, details: Dict[str, Any]) -> None:
        """Append an audit record.

        Parameters
        ----------
        action_type : str
            Category of the action, e.g. ``manual_challan`` or ``payment``.
        details : dict
            JSON-serialisable description of what was done.
        """
        record = {
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "action_type": action_type,
            "details": details,
        }
        line = json.dumps(record, default=str)
        with self._lock, self.log_file.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    def read_actions(self) -> List[Dict[str, Any]]:
        if not self.log_file.exists():
            return []
        actions: List[Dict[str, Any]] = []
        with self.log_file.open("r", encoding="utf-8") as f:
            for line in f:
                try:
                    actions.append(json.loads(line))
                except json.JSONDecodeError:
                    continue
        return actions
