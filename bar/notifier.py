"""
Queue-backed UpdateNotifier.

Listener threads push ChangeEvents; the bar's scheduler loop pops them and
re-renders the named blocks.
"""

import queue
from typing import Optional

from core import ChangeEvent


class QueueNotifier:
    """
    UpdateNotifier implementation backed by an unbounded thread-safe queue.

    notify() never blocks, so a slow scheduler cannot stall a listener.
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[ChangeEvent] = queue.Queue()

    def notify(self, event: ChangeEvent) -> None:
        """Enqueue an event for the scheduler."""
        self._queue.put_nowait(event)

    def get(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        """
        Wait for the next event.

        Args:
            timeout: Seconds to wait (None waits forever)

        Returns:
            The next event, or None if none arrived in time
        """
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> list[ChangeEvent]:
        """Pop every event that is already queued."""
        events: list[ChangeEvent] = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events

    def pending(self) -> int:
        return self._queue.qsize()

