"""Storage for the batch approval record.

There is at most one batch record per user, kept as a single JSON file.
A record older than the TTL is treated as absent.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from smart_approve.logging import Loggers
from smart_approve.persistence._utils import atomic_write_json, read_json

logger = Loggers.persistence()

PENDING = "pending"
APPROVED = "approved"

DEFAULT_BATCH_TTL_SECONDS = 10 * 60


@dataclass
class BatchRecord:
    """A set of planned commands awaiting (or granted) one user consent."""

    session_id: str
    commands: list[str] = field(default_factory=list)
    status: str = PENDING  # pending, approved
    summary: str = ""
    created_at: float = 0.0

    @property
    def is_pending(self) -> bool:
        return self.status == PENDING

    @property
    def is_approved(self) -> bool:
        return self.status == APPROVED

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "commands": self.commands,
            "status": self.status,
            "summary": self.summary,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BatchRecord":
        return cls(
            session_id=str(data["sessionId"]),
            commands=[str(c) for c in data.get("commands", [])],
            status=data.get("status", PENDING),
            summary=data.get("summary", ""),
            created_at=float(data.get("createdAt", 0)),
        )


class BatchStore:
    """File-backed singleton batch record."""

    def __init__(
        self,
        path: Path,
        ttl_seconds: float = DEFAULT_BATCH_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.path = path
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def now(self) -> float:
        return self._clock()

    def load(self) -> BatchRecord | None:
        """Return the live record, or None if missing, corrupt or expired."""
        data = read_json(self.path)
        if not isinstance(data, dict):
            return None

        try:
            record = BatchRecord.from_dict(data)
        except (KeyError, TypeError, ValueError):
            logger.warning("batch_record_corrupt", path=str(self.path))
            return None

        if not (record.is_pending or record.is_approved):
            return None
        if self._clock() - record.created_at >= self.ttl_seconds:
            logger.debug("batch_record_expired", session_id=record.session_id)
            return None
        return record

    def save(self, record: BatchRecord) -> None:
        try:
            atomic_write_json(self.path, record.to_dict())
        except OSError as e:
            logger.warning("batch_write_failed", path=str(self.path), error=str(e))
