"""
dbus-python implementation of the Connection protocol.

Signal delivery runs through GLib: connections opened with
``watch_signals=True`` are attached to the default GLib main context, and
process_events() iterates that context for a bounded time.
"""

import logging
from typing import Any, Optional

import dbus
import dbus.bus
import dbus.exceptions
import dbus.lowlevel
from dbus.mainloop.glib import DBusGMainLoop
from gi.repository import GLib

from .exceptions import BusConnectionError, QueryError
from .transport import InboundMessage, MessageCallback, MessageKind

logger = logging.getLogger(__name__)

LOCAL_INTERFACE = "org.freedesktop.DBus.Local"
DISCONNECTED = "Disconnected"

_MESSAGE_KINDS = {
    dbus.lowlevel.MESSAGE_TYPE_METHOD_CALL: MessageKind.METHOD_CALL,
    dbus.lowlevel.MESSAGE_TYPE_METHOD_RETURN: MessageKind.METHOD_RETURN,
    dbus.lowlevel.MESSAGE_TYPE_ERROR: MessageKind.ERROR,
    dbus.lowlevel.MESSAGE_TYPE_SIGNAL: MessageKind.SIGNAL,
}


def _expire(*_args: Any) -> bool:
    return GLib.SOURCE_REMOVE


def to_inbound_message(message: dbus.lowlevel.Message) -> Optional[InboundMessage]:
    """Convert a low-level dbus message, or None for unknown types."""
    kind = _MESSAGE_KINDS.get(message.get_type())
    if kind is None:
        return None
    try:
        args = tuple(message.get_args_list())
    except (dbus.exceptions.DBusException, TypeError, ValueError) as exc:
        logger.debug("Undecodable %s message body: %s", kind.value, exc)
        args = ()
    return InboundMessage(
        kind=kind,
        interface=message.get_interface(),
        member=message.get_member(),
        args=args,
    )


class DBusConnection:
    """A private connection to a bus at an explicit address."""

    def __init__(self, address: str, watch_signals: bool = False) -> None:
        self.address = address
        self._disconnected = False
        self._context: Optional[GLib.MainContext] = None
        mainloop = None
        if watch_signals:
            mainloop = DBusGMainLoop()
            self._context = GLib.MainContext.default()

        try:
            self._conn = dbus.bus.BusConnection(address, mainloop=mainloop)
        except dbus.exceptions.DBusException as exc:
            raise BusConnectionError(
                f"Failed to establish D-Bus connection to {address}: {exc}"
            ) from exc
        self._conn.set_exit_on_disconnect(False)

    def get_property(
        self,
        bus_name: str,
        object_path: str,
        interface: str,
        name: str,
        timeout: float,
    ) -> Any:
        try:
            proxy = self._conn.get_object(bus_name, object_path, introspect=False)
            return proxy.Get(
                interface,
                name,
                dbus_interface=dbus.PROPERTIES_IFACE,
                timeout=timeout,
            )
        except dbus.exceptions.DBusException as exc:
            raise QueryError(f"Failed to query {interface}.{name}: {exc}") from exc

    def add_signal_match(
        self, interface: str, member: str, callback: MessageCallback
    ) -> None:
        if self._context is None:
            raise BusConnectionError("Connection was opened without signal support")

        def _filter(_conn: Any, message: dbus.lowlevel.Message) -> int:
            inbound = to_inbound_message(message)
            if inbound is not None:
                if inbound.interface == LOCAL_INTERFACE and inbound.member == DISCONNECTED:
                    logger.warning("Bus at %s disconnected", self.address)
                    self._disconnected = True
                else:
                    callback(inbound)
            return dbus.lowlevel.HANDLER_RESULT_NOT_YET_HANDLED

        self._conn.add_message_filter(_filter)
        rule = f"type='signal',interface='{interface}',member='{member}'"
        try:
            self._conn.add_match_string(rule)
        except dbus.exceptions.DBusException as exc:
            raise BusConnectionError(
                f"Failed to add D-Bus match rule {rule}: {exc}"
            ) from exc
        logger.debug("Subscribed to %s.%s on %s", interface, member, self.address)

    def process_events(self, timeout: float) -> None:
        if self._context is None:
            raise BusConnectionError("Connection was opened without signal support")
        if self._disconnected:
            raise BusConnectionError(f"Lost D-Bus connection to {self.address}")

        source = GLib.timeout_source_new(max(1, int(timeout * 1000)))
        source.set_callback(_expire)
        source.attach(self._context)
        try:
            self._context.iteration(True)
            while self._context.pending():
                self._context.iteration(False)
        finally:
            source.destroy()

        if self._disconnected:
            raise BusConnectionError(f"Lost D-Bus connection to {self.address}")

    def wakeup(self) -> None:
        if self._context is not None:
            self._context.wakeup()

    def close(self) -> None:
        try:
            self._conn.close()
        except dbus.exceptions.DBusException as exc:
            logger.debug("Error closing connection to %s: %s", self.address, exc)


def open_connection(address: str, *, watch_signals: bool = False) -> DBusConnection:
    """Open a private connection to the bus at address."""
    return DBusConnection(address, watch_signals=watch_signals)
