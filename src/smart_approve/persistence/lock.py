"""Advisory cross-process lock around oracle calls.

Two tool calls issued back to back spawn two hook processes, and both may
want to ask the oracle. The lock serializes those calls with a marker file
holding the time it was written and a token naming its holder. The marker
is created exclusively, so of two racing processes only one holds it.
Liveness beats exclusion here: a waiter gives up after a bounded wait and
proceeds without the lock, and a marker left behind by a crashed holder
goes stale and is taken over.
"""

import os
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Generator, TypeVar

from smart_approve.logging import Loggers

logger = Loggers.persistence()

T = TypeVar("T")


@dataclass(frozen=True)
class LockPolicy:
    """Timing policy for the oracle lock, in seconds."""

    stale_after: float = 30.0
    max_wait: float = 10.0
    poll_interval: float = 1.0


@dataclass(frozen=True)
class _Marker:
    written: float
    token: str | None = None


class OracleLock:
    """Marker-file lock with bounded waiting.

    Example:
        >>> lock = OracleLock(settings.lock_path)
        >>> with lock.hold() as held:
        ...     answer = backend.complete(prompt, timeout=15)
    """

    def __init__(
        self,
        path: Path,
        policy: LockPolicy | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.path = path
        self.policy = policy or LockPolicy()
        self._clock = clock
        self._sleep = sleep

    @contextmanager
    def hold(self) -> Generator[bool, None, None]:
        """Acquire the lock for the duration of the block.

        Yields:
            True if the lock was acquired, False if the wait timed out and
            the block runs unlocked.
        """
        token = self._acquire()
        try:
            yield token is not None
        finally:
            if token is not None:
                self._release(token)

    def with_lock(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Call ``fn`` while holding the lock."""
        with self.hold():
            return fn(*args, **kwargs)

    def is_held(self) -> bool:
        """Whether a fresh marker exists."""
        marker = self._read_marker()
        if marker is None:
            return False
        return self._clock() - marker.written < self.policy.stale_after

    def _acquire(self) -> str | None:
        token = uuid.uuid4().hex
        waited = 0.0
        while True:
            try:
                if self._create_marker(token):
                    return token
            except OSError as e:
                logger.warning("lock_write_failed", path=str(self.path), error=str(e))
                return None

            marker = self._read_marker()
            if marker is None:
                # Released between our attempt and the read
                continue

            age = self._clock() - marker.written
            if age >= self.policy.stale_after:
                logger.info("lock_stale", path=str(self.path), age=round(age, 1))
                if not self._discard_stale(marker):
                    return None
                continue

            if waited >= self.policy.max_wait:
                logger.warning("lock_wait_exceeded", path=str(self.path), waited=waited)
                return None

            self._sleep(self.policy.poll_interval)
            waited += self.policy.poll_interval

    def _create_marker(self, token: str) -> bool:
        """Create the marker exclusively. False if it already exists."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(f"{self._clock()!r} {token}")
        return True

    def _discard_stale(self, seen: _Marker) -> bool:
        """Remove a stale marker without removing a fresh one written meanwhile.

        The marker is first renamed aside. If what was moved is not the
        marker judged stale, another process took over in between and its
        marker is put back.
        """
        aside = self.path.with_name(f"{self.path.name}.{uuid.uuid4().hex}")
        try:
            os.replace(self.path, aside)
        except FileNotFoundError:
            return True
        except OSError as e:
            logger.warning("lock_takeover_failed", path=str(self.path), error=str(e))
            return False

        try:
            moved = _parse_marker(aside.read_text(encoding="utf-8"))
            if moved != seen:
                try:
                    os.link(aside, self.path)
                except FileExistsError:
                    pass
            aside.unlink()
        except OSError as e:
            logger.warning("lock_takeover_failed", path=str(self.path), error=str(e))
            return False
        return True

    def _read_marker(self) -> _Marker | None:
        try:
            return _parse_marker(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except OSError:
            return _Marker(0.0)

    def _release(self, token: str) -> None:
        marker = self._read_marker()
        if marker is None or marker.token != token:
            logger.info("lock_taken_over", path=str(self.path))
            return
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("lock_release_failed", path=str(self.path), error=str(e))


def _parse_marker(text: str) -> _Marker:
    """Parse ``"<epoch seconds> <token>"``; unreadable markers count as abandoned."""
    fields = text.split()
    try:
        written = float(fields[0])
    except (IndexError, ValueError):
        return _Marker(0.0)
    return _Marker(written, fields[1] if len(fields) > 1 else None)
