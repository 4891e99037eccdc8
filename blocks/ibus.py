"""
IBus block: shows the active IBus input-method engine.

The block is event driven. A background SignalListener mirrors
GlobalEngineChanged signals into an EngineStateStore and pushes a ChangeEvent
to the scheduler, which then calls update().
"""

import logging
import uuid
from functools import partial
from typing import Callable, Optional

from bar.logging_config import log_timing
from config import IBusBlockConfig
from config.defaults import BLOCK_NAME
from core import (
    Connection,
    ConnectionFactory,
    EngineStateStore,
    NullNotifier,
    SignalListener,
    UpdateNotifier,
    abbreviate_engine,
    query_global_engine,
    resolve_ibus_address,
)

from .base import ClickEvent
from .widget import TextWidget, WidgetState

logger = logging.getLogger(__name__)


def open_dbus_connection(address: str, *, watch_signals: bool = False) -> Connection:
    """Default ConnectionFactory backed by dbus-python."""
    # Deferred so dbus/GLib load only when a real bus is used
    from core.bus import open_connection

    return open_connection(address, watch_signals=watch_signals)


class IBusBlock:
    """Status block reporting the active IBus engine.

    Construction resolves the bus address and queries the current engine
    synchronously; any failure raises a BlockError and no block is created.

    Examples:
        >>> notifier = QueueNotifier()
        >>> with IBusBlock(IBusBlockConfig(), notifier) as block:
        ...     event = notifier.get()
        ...     block.update()
        ...     print(block.view()[0].text)
    """

    def __init__(
        self,
        config: Optional[IBusBlockConfig] = None,
        notifier: Optional[UpdateNotifier] = None,
        *,
        resolve: Optional[Callable[[], str]] = None,
        connect: Optional[ConnectionFactory] = None,
        start_listener: bool = True,
    ):
        """Initialize IBusBlock.

        Args:
            config: Block configuration (defaults to IBusBlockConfig())
            notifier: Receives a ChangeEvent whenever the engine changes
            resolve: Returns the bus address (defaults to discovery from the environment)
            connect: Opens bus connections (defaults to dbus-python)
            start_listener: Start the background listener immediately

        Raises:
            BlockError: If discovery or the initial engine query fails
        """
        self.config = config or IBusBlockConfig()
        self._id = uuid.uuid4().hex
        self._notifier = notifier or NullNotifier()
        self._connect = connect or open_dbus_connection
        self._resolve = resolve or partial(
            resolve_ibus_address,
            machine_id_paths=self.config.discovery.machine_id_paths,
            address_env=self.config.discovery.address_env,
        )

        with log_timing(logger, "IBus discovery"):
            address = self._resolve()
            engine = self._query_engine(address)

        self._store = EngineStateStore(engine, lock_timeout=self.config.lock_timeout)
        self._text = TextWidget(BLOCK_NAME, self._id, self.config.initial_text)
        self._listener = SignalListener(
            self._id,
            address,
            self._store,
            self._notifier,
            self._connect,
            resolve=self._resolve,
            receive_timeout=self.config.receive_timeout,
            query_timeout=self.config.query_timeout,
            retry=self.config.retry,
        )
        logger.info("IBus block %s connected to %s (engine %s)", self._id, address, engine)

        if start_listener:
            self.start()

    def _query_engine(self, address: str) -> str:
        connection = self._connect(address)
        try:
            return query_global_engine(connection, self.config.query_timeout)
        finally:
            connection.close()

    @property
    def listener(self) -> SignalListener:
        return self._listener

    @property
    def store(self) -> EngineStateStore:
        return self._store

    def start(self) -> None:
        """Start the background listener."""
        self._listener.start()

    def identifier(self) -> str:
        return self._id

    def update(self) -> Optional[float]:
        """
        Copy the latest engine into the widget.

        Returns:
            None; the block is re-rendered on ChangeEvents, not on a timer

        Raises:
            LockError: If the engine state could not be read in time
        """
        snapshot = self._store.snapshot()
        engine = abbreviate_engine(snapshot.engine) if self.config.as_icon else snapshot.engine
        self._text.set_text(engine)
        self._text.set_state(WidgetState.IDLE if snapshot.healthy else WidgetState.WARNING)
        return None

    def view(self) -> list[TextWidget]:
        return [self._text]

    def click(self, event: ClickEvent) -> None:
        # TODO: switch engines on click via org.freedesktop.IBus.SetGlobalEngine
        logger.debug("Ignoring click on %s: button %d", self._id, event.button)

    def close(self, timeout: Optional[float] = None) -> bool:
        """
        Stop the background listener.

        Args:
            timeout: Seconds to wait (defaults to config.shutdown_timeout)

        Returns:
            True if the listener has stopped
        """
        wait = self.config.shutdown_timeout if timeout is None else timeout
        return self._listener.stop(wait)

    def __enter__(self) -> "IBusBlock":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
