"""
Bus transport interface.

Core code talks to the bus through the Connection protocol. The dbus-python
implementation lives in core.bus; tests provide in-memory connections.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Protocol


class MessageKind(str, Enum):
    """D-Bus message types."""

    METHOD_CALL = "method_call"
    METHOD_RETURN = "method_return"
    ERROR = "error"
    SIGNAL = "signal"


@dataclass(frozen=True)
class InboundMessage:
    """A message received from the bus, reduced to what the block inspects."""

    kind: MessageKind
    interface: Optional[str] = None
    member: Optional[str] = None
    args: tuple[Any, ...] = field(default_factory=tuple)


MessageCallback = Callable[[InboundMessage], None]


class Connection(Protocol):
    """An open, authenticated channel to the bus."""

    def get_property(
        self,
        bus_name: str,
        object_path: str,
        interface: str,
        name: str,
        timeout: float,
    ) -> Any:
        """Fetch a property value. Raises QueryError."""
        ...

    def add_signal_match(
        self, interface: str, member: str, callback: MessageCallback
    ) -> None:
        """Subscribe to a signal and route inbound traffic to callback."""
        ...

    def process_events(self, timeout: float) -> None:
        """Dispatch inbound traffic, waiting at most timeout seconds.

        Raises BusConnectionError once the connection is lost.
        """
        ...

    def wakeup(self) -> None:
        """Interrupt a process_events() wait from another thread."""
        ...

    def close(self) -> None:
        """Release the connection."""
        ...


class ConnectionFactory(Protocol):
    """Opens connections to a bus address."""

    def __call__(self, address: str, *, watch_signals: bool = False) -> Connection:
        ...
