"""
IBus engine queries and signal parsing.
"""

import logging
from typing import Any, Optional

from config.defaults import (
    ENGINE_DESC_NAME_INDEX,
    GLOBAL_ENGINE_CHANGED,
    GLOBAL_ENGINE_PROPERTY,
    IBUS_BUS_NAME,
    IBUS_INTERFACE,
    IBUS_OBJECT_PATH,
    UNKNOWN_ENGINE,
)

from .exceptions import QueryError
from .transport import Connection, InboundMessage, MessageKind

logger = logging.getLogger(__name__)


def coerce_engine(value: Any) -> str:
    """Return value as an engine name, or the unknown sentinel."""
    if isinstance(value, str) and value.strip() and value.isprintable():
        return str(value)
    return UNKNOWN_ENGINE


def engine_from_descriptor(descriptor: Any) -> str:
    """
    Extract the engine name from an IBusEngineDesc structure.

    The structure looks like
    ``["IBusEngineDesc", {}, "xkb:us::eng", "English (US)", ...]``; the third
    element is the name, which is also what GlobalEngineChanged carries.

    Raises:
        QueryError: If the value is not a sequence with a name slot
    """
    if isinstance(descriptor, (str, bytes)):
        raise QueryError("Failed to parse D-Bus message: descriptor is not a structure")
    try:
        name = descriptor[ENGINE_DESC_NAME_INDEX]
    except (TypeError, IndexError, KeyError) as exc:
        raise QueryError(f"Failed to parse D-Bus message: {exc}") from exc
    return coerce_engine(name)


def query_global_engine(connection: Connection, timeout: float) -> str:
    """Ask IBus for the currently active engine name."""
    descriptor = connection.get_property(
        IBUS_BUS_NAME,
        IBUS_OBJECT_PATH,
        IBUS_INTERFACE,
        GLOBAL_ENGINE_PROPERTY,
        timeout,
    )
    engine = engine_from_descriptor(descriptor)
    logger.debug("Global engine is %s", engine)
    return engine


def is_engine_changed(message: InboundMessage) -> bool:
    """True for GlobalEngineChanged signals on the IBus interface."""
    return (
        message.kind is MessageKind.SIGNAL
        and message.interface == IBUS_INTERFACE
        and message.member == GLOBAL_ENGINE_CHANGED
    )


def parse_engine_signal(message: InboundMessage) -> Optional[str]:
    """
    Return the new engine name carried by a GlobalEngineChanged signal.

    Any other message, or a signal without a leading string argument, yields
    None.
    """
    if not is_engine_changed(message):
        return None
    if not message.args or not isinstance(message.args[0], str):
        logger.debug("Ignoring %s without an engine name", GLOBAL_ENGINE_CHANGED)
        return None
    return coerce_engine(message.args[0])


def abbreviate_engine(engine: str) -> str:
    """
    Short form of an engine name for compact display.

    XKB engines are named ``xkb:<layout>:<variant>:<lang>``, so
    ``xkb:jp::jpn`` becomes ``jp``. Other names are returned unchanged.
    """
    parts = engine.split(":")
    if len(parts) >= 2 and parts[0] == "xkb" and parts[1]:
        return parts[1]
    return engine
