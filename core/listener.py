"""
Background listener for IBus engine changes.

SignalListener owns a dedicated bus connection on its own thread, feeds
GlobalEngineChanged signals into an EngineStateStore and notifies the
scheduler after every write. A supervisor loop reconnects with exponential
backoff when the connection fails, and a stop token ends the thread.
"""

import logging
import threading
from typing import Callable, Optional

from config.block_config import RetryConfig
from config.defaults import (
    DEFAULT_QUERY_TIMEOUT,
    DEFAULT_RECEIVE_TIMEOUT,
    GLOBAL_ENGINE_CHANGED,
    IBUS_INTERFACE,
)

from .engine import parse_engine_signal, query_global_engine
from .events import ChangeEvent, UpdateNotifier
from .exceptions import BlockError
from .state import EngineStateStore
from .transport import Connection, ConnectionFactory, InboundMessage

logger = logging.getLogger(__name__)


class SignalListener:
    """Supervised background task mirroring the active engine into a store.

    Examples:
        >>> listener = SignalListener(block_id, address, store, notifier, open_connection)
        >>> listener.start()
        >>> ...
        >>> listener.stop(timeout=2.0)
    """

    def __init__(
        self,
        block_id: str,
        address: str,
        store: EngineStateStore,
        notifier: UpdateNotifier,
        connect: ConnectionFactory,
        resolve: Optional[Callable[[], str]] = None,
        receive_timeout: float = DEFAULT_RECEIVE_TIMEOUT,
        query_timeout: float = DEFAULT_QUERY_TIMEOUT,
        retry: Optional[RetryConfig] = None,
    ):
        """Initialize SignalListener.

        Args:
            block_id: Identifier put on every ChangeEvent
            address: Bus address resolved at block construction
            store: Engine state to write to
            notifier: Receives a ChangeEvent after every state change
            connect: Opens the listener's own connection
            resolve: Re-discovers the address before reconnecting
            receive_timeout: Upper bound of one wait for bus traffic, in seconds
            query_timeout: Timeout for the engine query after a reconnect
            retry: Reconnect policy (defaults to RetryConfig())
        """
        self.block_id = block_id
        self._address = address
        self._store = store
        self._notifier = notifier
        self._connect = connect
        self._resolve = resolve
        self._receive_timeout = receive_timeout
        self._query_timeout = query_timeout
        self._retry = retry or RetryConfig()

        self._stop = threading.Event()
        self._connection: Optional[Connection] = None
        self._connection_lock = threading.Lock()
        self._failures = 0
        self._thread = threading.Thread(
            target=self._run,
            name=f"ibus-listener-{block_id}",
            daemon=True,
        )

    @property
    def address(self) -> str:
        return self._address

    @property
    def failures(self) -> int:
        """Consecutive failures since the last successful subscription."""
        return self._failures

    def start(self) -> None:
        self._thread.start()

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Ask the listener to finish and wait for it.

        Args:
            timeout: Seconds to wait for the thread (None waits forever)

        Returns:
            True if the thread is no longer running
        """
        self._stop.set()
        with self._connection_lock:
            connection = self._connection
        if connection is not None:
            connection.wakeup()

        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout)
        stopped = not self._thread.is_alive()
        if not stopped:
            logger.warning("Listener %s did not stop within %ss", self.block_id, timeout)
        return stopped

    def _run(self) -> None:
        logger.debug("Listener %s started for %s", self.block_id, self._address)
        while not self._stop.is_set():
            try:
                self._listen(refresh=self._failures > 0)
            except BlockError as exc:
                self._failures += 1
                logger.warning(
                    "Listener %s failed (attempt %d): %s",
                    self.block_id,
                    self._failures,
                    exc,
                )
                self._report_degraded(str(exc))
                if not self._should_retry():
                    logger.error("Listener %s giving up; display will stop updating", self.block_id)
                    return
                if self._stop.wait(self._backoff_delay()):
                    break
            except Exception as exc:
                self._report_degraded(f"listener crashed: {exc}")
                raise
        logger.debug("Listener %s stopped", self.block_id)

    def _listen(self, refresh: bool) -> None:
        if refresh and self._resolve is not None:
            self._address = self._resolve()

        connection = self._connect(self._address, watch_signals=True)
        with self._connection_lock:
            self._connection = connection
        try:
            if self._stop.is_set():
                return
            connection.add_signal_match(IBUS_INTERFACE, GLOBAL_ENGINE_CHANGED, self._on_message)
            # Changes may have been missed while disconnected
            engine = query_global_engine(connection, self._query_timeout) if refresh else None
            self._failures = 0
            if engine is not None:
                self._store.set(engine)
                self._store.mark_healthy()
                self._notify()
                logger.info("Listener %s reconnected to %s", self.block_id, self._address)

            while not self._stop.is_set():
                connection.process_events(self._receive_timeout)
        finally:
            with self._connection_lock:
                self._connection = None
            connection.close()

    def _on_message(self, message: InboundMessage) -> None:
        engine = parse_engine_signal(message)
        if engine is None:
            return
        self._store.set(engine)
        self._notify()

    def _notify(self) -> None:
        self._notifier.notify(ChangeEvent(block_id=self.block_id))

    def _report_degraded(self, reason: str) -> None:
        self._store.mark_degraded(reason)
        self._notify()

    def _should_retry(self) -> bool:
        if not self._retry.enabled:
            return False
        max_attempts = self._retry.max_attempts
        return max_attempts is None or self._failures < max_attempts

    def _backoff_delay(self) -> float:
        delay = self._retry.initial_delay * (2 ** min(self._failures - 1, 32))
        return min(delay, self._retry.max_delay)
