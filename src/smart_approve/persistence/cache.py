"""Persistent decision cache.

Remembers oracle approvals across hook invocations, which are otherwise
stateless. Stored as one JSON object in the state directory::

    {
        "npm run build@/app": {
            "decision": "approve",
            "sessionId": "abc123",
            "timestamp": 1718000000.0
        }
    }

Only approvals are ever written. A lookup hits when the entry was written
by the same session, or by any session within the TTL. Each write purges
entries older than the purge age.
"""

import re
import time
from pathlib import Path
from typing import Any, Callable

from smart_approve.logging import Loggers
from smart_approve.persistence._utils import atomic_write_json, read_json

logger = Loggers.persistence()

APPROVE = "approve"

DEFAULT_TTL_SECONDS = 24 * 60 * 60
DEFAULT_PURGE_SECONDS = 7 * 24 * 60 * 60

_CD_PREFIX = re.compile(
    r"""^\s*cd\s+(?P<target>"[^"]*"|'[^']*'|\S+)\s*(?:&&|;)\s*(?P<rest>.+?)\s*$""",
    re.DOTALL,
)
_WHITESPACE = re.compile(r"\s+")


def normalize_command(command: str) -> str:
    """Canonical cache key for a command.

    ``cd /app && npm run build`` and ``cd /app; npm run build`` both become
    ``npm run build@/app``. Other commands only have whitespace collapsed.
    """
    match = _CD_PREFIX.match(command)
    if match:
        target = match.group("target")
        if len(target) >= 2 and target[0] == target[-1] and target[0] in "\"'":
            target = target[1:-1]
        rest = _WHITESPACE.sub(" ", match.group("rest"))
        return f"{rest}@{target}"
    return _WHITESPACE.sub(" ", command.strip())


class DecisionCache:
    """File-backed cache of approved commands.

    Example:
        >>> cache = DecisionCache(settings.cache_path)
        >>> cache.put("session-1", "make release", "approve")
        >>> cache.get("session-1", "make release")
        'approve'
    """

    def __init__(
        self,
        path: Path,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        purge_seconds: float = DEFAULT_PURGE_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.path = path
        self.ttl_seconds = ttl_seconds
        self.purge_seconds = purge_seconds
        self._clock = clock

    def get(self, session_id: str, command: str) -> str | None:
        """Return the cached decision for a command, or None on a miss."""
        entry = self._load().get(normalize_command(command))
        if not isinstance(entry, dict) or entry.get("decision") != APPROVE:
            return None

        age = _age(entry, self._clock())
        if age >= self.purge_seconds:
            return None
        if entry.get("sessionId") == session_id or age < self.ttl_seconds:
            return APPROVE
        return None

    def put(self, session_id: str, command: str, decision: str) -> None:
        """Record a decision. Anything other than an approval is ignored."""
        if decision != APPROVE:
            return

        now = self._clock()
        entries = {
            key: entry
            for key, entry in self._load().items()
            if isinstance(entry, dict)
            and _age(entry, now) < self.purge_seconds
        }
        entries[normalize_command(command)] = {
            "decision": decision,
            "sessionId": session_id,
            "timestamp": now,
        }

        try:
            atomic_write_json(self.path, entries)
        except OSError as e:
            logger.warning("cache_write_failed", path=str(self.path), error=str(e))

    def _load(self) -> dict[str, Any]:
        data = read_json(self.path)
        return data if isinstance(data, dict) else {}


def _age(entry: dict[str, Any], now: float) -> float:
    try:
        return now - float(entry.get("timestamp", 0))
    except (TypeError, ValueError):
        return float("inf")
