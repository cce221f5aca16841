"""File-backed state shared between hook invocations."""

from smart_approve.persistence.batch_store import BatchRecord, BatchStore
from smart_approve.persistence.cache import DecisionCache, normalize_command
from smart_approve.persistence.lock import LockPolicy, OracleLock

__all__ = [
    "BatchRecord",
    "BatchStore",
    "DecisionCache",
    "LockPolicy",
    "OracleLock",
    "normalize_command",
]
