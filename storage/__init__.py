"""Storage package.

Record stores for challans (in-memory and SQLite) and the JSONL audit
trail for administrative actions.
"""

from .audit_logger import AuditLogger
from .challan_store import ChallanStore, InMemoryChallanStore
from .sqlite_store import SQLiteChallanStore

__all__ = ["AuditLogger", "ChallanStore", "InMemoryChallanStore", "SQLiteChallanStore"]
