"""
Tests for the dbus-python transport.

These need dbus-python and PyGObject. The connection tests also start a
private dbus-daemon and are skipped when the binary is not installed.
"""

import shutil
import subprocess
import time

import pytest

dbus_lowlevel = pytest.importorskip("dbus.lowlevel")
pytest.importorskip("gi.repository.GLib")

import dbus.bus  # noqa: E402

from core import BusConnectionError, MessageKind, QueryError, parse_engine_signal  # noqa: E402
from core.bus import DBusConnection, open_connection, to_inbound_message  # noqa: E402

DBUS_NAME = "org.freedesktop.DBus"
DBUS_PATH = "/org/freedesktop/DBus"


@pytest.fixture
def dbus_daemon():
    """Run a throwaway session bus and yield (address, process)."""
    binary = shutil.which("dbus-daemon")
    if binary is None:
        pytest.skip("dbus-daemon is not installed")

    proc = subprocess.Popen(
        [binary, "--session", "--nofork", "--print-address"],
        stdout=subprocess.PIPE,
        stderr=subprocess.DEVNULL,
        text=True,
    )
    address = proc.stdout.readline().strip()
    if not address:
        proc.kill()
        proc.wait()
        proc.stdout.close()
        pytest.skip("dbus-daemon did not start")

    yield address, proc

    if proc.poll() is None:
        proc.terminate()
        proc.wait(timeout=5)
    proc.stdout.close()


@pytest.fixture
def bus_address(dbus_daemon):
    return dbus_daemon[0]


def pump_until(conn, predicate, deadline=5.0):
    end = time.monotonic() + deadline
    while not predicate() and time.monotonic() < end:
        conn.process_events(0.1)
    return predicate()


class TestToInboundMessage:
    def test_engine_changed_signal(self):
        message = dbus_lowlevel.SignalMessage(
            "/org/freedesktop/IBus", "org.freedesktop.IBus", "GlobalEngineChanged"
        )
        message.append("xkb:jp::jpn", signature="s")

        inbound = to_inbound_message(message)
        assert inbound.kind is MessageKind.SIGNAL
        assert inbound.interface == "org.freedesktop.IBus"
        assert inbound.member == "GlobalEngineChanged"
        assert parse_engine_signal(inbound) == "xkb:jp::jpn"

    def test_method_call_is_not_a_signal(self):
        message = dbus_lowlevel.MethodCallMessage(
            "org.freedesktop.IBus",
            "/org/freedesktop/IBus",
            "org.freedesktop.IBus",
            "GlobalEngineChanged",
        )
        inbound = to_inbound_message(message)
        assert inbound.kind is MessageKind.METHOD_CALL
        assert parse_engine_signal(inbound) is None


class TestDBusConnection:
    """Test DBusConnection against a private dbus-daemon."""

    def test_unreachable_address(self, temp_dir):
        with pytest.raises(BusConnectionError):
            open_connection(f"unix:path={temp_dir}/no-such-socket")

    def test_query_only_connection_rejects_signal_calls(self, bus_address):
        """Test that signal methods need a connection opened with watch_signals."""
        conn = DBusConnection(bus_address)
        try:
            with pytest.raises(BusConnectionError):
                conn.add_signal_match("org.freedesktop.IBus", "GlobalEngineChanged", lambda m: None)
            with pytest.raises(BusConnectionError):
                conn.process_events(0.01)
        finally:
            conn.close()

    def test_missing_property_is_query_error(self, bus_address):
        conn = DBusConnection(bus_address)
        try:
            with pytest.raises(QueryError):
                conn.get_property(DBUS_NAME, DBUS_PATH, DBUS_NAME, "NoSuchProperty", 2.0)
        finally:
            conn.close()

    def test_missing_service_is_query_error(self, bus_address):
        conn = DBusConnection(bus_address)
        try:
            with pytest.raises(QueryError):
                conn.get_property(
                    "org.freedesktop.IBus",
                    "/org/freedesktop/IBus",
                    "org.freedesktop.IBus",
                    "GlobalEngine",
                    2.0,
                )
        finally:
            conn.close()

    def test_matching_signal_reaches_callback(self, bus_address):
        received = []
        conn = open_connection(bus_address, watch_signals=True)
        sender = dbus.bus.BusConnection(bus_address)
        try:
            conn.add_signal_match("org.freedesktop.IBus", "GlobalEngineChanged", received.append)

            message = dbus_lowlevel.SignalMessage(
                "/org/freedesktop/IBus", "org.freedesktop.IBus", "GlobalEngineChanged"
            )
            message.append("xkb:jp::jpn", signature="s")
            sender.send_message(message)
            sender.flush()

            assert pump_until(
                conn, lambda: any(parse_engine_signal(m) == "xkb:jp::jpn" for m in received)
            )
        finally:
            sender.close()
            conn.close()

    def test_daemon_exit_raises_connection_error(self, dbus_daemon):
        """Test that losing the bus surfaces from process_events."""
        address, proc = dbus_daemon
        conn = open_connection(address, watch_signals=True)
        try:
            conn.add_signal_match("org.freedesktop.IBus", "GlobalEngineChanged", lambda m: None)
            proc.terminate()
            proc.wait(timeout=5)

            with pytest.raises(BusConnectionError):
                pump_until(conn, lambda: False)
        finally:
            conn.close()
