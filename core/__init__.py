"""
Core package for the IBus status block.

Bus address discovery, engine queries, the shared engine state and the
background signal listener. The dbus-python transport lives in core.bus and
is imported only where a real connection is opened.
"""

from .address import (
    discovery_file_path,
    extract_address,
    parse_display_number,
    read_machine_id,
    resolve_ibus_address,
)
from .engine import (
    abbreviate_engine,
    coerce_engine,
    engine_from_descriptor,
    is_engine_changed,
    parse_engine_signal,
    query_global_engine,
)
from .events import ChangeEvent, NullNotifier, UpdateNotifier
from .exceptions import (
    BlockError,
    BusConnectionError,
    DiscoveryIOError,
    ErrorKind,
    LockError,
    MalformedInputError,
    MissingEnvError,
    QueryError,
)
from .listener import SignalListener
from .state import EngineSnapshot, EngineStateStore
from .transport import Connection, ConnectionFactory, InboundMessage, MessageKind

__all__ = [
    # Exceptions
    "ErrorKind",
    "BlockError",
    "MissingEnvError",
    "DiscoveryIOError",
    "MalformedInputError",
    "BusConnectionError",
    "QueryError",
    "LockError",
    # Events
    "ChangeEvent",
    "UpdateNotifier",
    "NullNotifier",
    # Transport
    "Connection",
    "ConnectionFactory",
    "InboundMessage",
    "MessageKind",
    # Discovery
    "resolve_ibus_address",
    "read_machine_id",
    "parse_display_number",
    "discovery_file_path",
    "extract_address",
    # Engine
    "coerce_engine",
    "engine_from_descriptor",
    "query_global_engine",
    "is_engine_changed",
    "parse_engine_signal",
    "abbreviate_engine",
    # State
    "EngineSnapshot",
    "EngineStateStore",
    # Listener
    "SignalListener",
]
