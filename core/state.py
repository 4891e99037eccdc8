"""
Engine state shared between the signal listener and the block.

The listener thread is the only writer. Readers copy the current snapshot
under the same lock, so they see either the old or the new value, never a
mix.
"""

import threading
from dataclasses import dataclass, replace
from typing import Optional

from config.defaults import DEFAULT_LOCK_TIMEOUT, UNKNOWN_ENGINE

from .exceptions import LockError


@dataclass(frozen=True)
class EngineSnapshot:
    """Last observed engine plus the health of the listener feeding it."""

    engine: str = UNKNOWN_ENGINE
    healthy: bool = True
    error: Optional[str] = None


class EngineStateStore:
    """Single-slot, latest-value cell guarded by a mutex."""

    def __init__(
        self,
        engine: str = UNKNOWN_ENGINE,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
    ) -> None:
        self._lock = threading.Lock()
        self._lock_timeout = lock_timeout
        self._snapshot = EngineSnapshot(engine=engine)

    def set(self, engine: str) -> None:
        """Replace the engine name."""
        with self._lock:
            self._snapshot = replace(self._snapshot, engine=engine)

    def mark_degraded(self, reason: str) -> None:
        """Record that the listener is not currently receiving updates."""
        with self._lock:
            self._snapshot = replace(self._snapshot, healthy=False, error=reason)

    def mark_healthy(self) -> None:
        with self._lock:
            self._snapshot = replace(self._snapshot, healthy=True, error=None)

    def snapshot(self, timeout: Optional[float] = None) -> EngineSnapshot:
        """
        Copy the current state.

        Args:
            timeout: Seconds to wait for the lock (defaults to the store's lock timeout)

        Raises:
            LockError: If the lock could not be acquired in time
        """
        wait = self._lock_timeout if timeout is None else timeout
        if not self._lock.acquire(timeout=wait):
            raise LockError("failed to acquire lock")
        try:
            return self._snapshot
        finally:
            self._lock.release()

    def get(self) -> str:
        """Current engine name."""
        return self.snapshot().engine
