"""
Shared pytest fixtures for all tests.

FakeBus stands in for dbus-python: it is a ConnectionFactory whose
connections answer property queries from a canned descriptor and deliver
queued messages from inside process_events(), on the listener's thread.
"""
import queue
import tempfile
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

import pytest

from config.defaults import GLOBAL_ENGINE_CHANGED, IBUS_INTERFACE
from core import BusConnectionError, InboundMessage, MessageKind, QueryError

ENGINE_DESC = [
    "IBusEngineDesc",
    {},
    "xkb:us::eng",
    "English (US)",
    "English (US)",
    "en",
    "GPL",
    "Peng Huang <shawn.p.huang@gmail.com>",
    "ibus-keyboard",
    "us",
    99,
]

MACHINE_ID = "0123456789abcdef0123456789abcdef"

_WAKE = object()
_DISCONNECT = object()


def engine_changed(engine: Any) -> InboundMessage:
    """A GlobalEngineChanged signal carrying engine."""
    return InboundMessage(
        kind=MessageKind.SIGNAL,
        interface=IBUS_INTERFACE,
        member=GLOBAL_ENGINE_CHANGED,
        args=(engine,),
    )


class FakeConnection:
    """In-memory Connection."""

    def __init__(
        self,
        address: str,
        watch_signals: bool,
        descriptor: Any,
        query_error: Optional[Exception] = None,
    ):
        self.address = address
        self.watch_signals = watch_signals
        self.descriptor = descriptor
        self.query_error = query_error
        self.queries: list[tuple[str, str, str, str]] = []
        self.matches: list[tuple[str, str]] = []
        self.subscribed = threading.Event()
        self.closed = threading.Event()
        self._callbacks: list[Callable[[InboundMessage], None]] = []
        self._inbox: queue.Queue[Any] = queue.Queue()

    def get_property(self, bus_name, object_path, interface, name, timeout):
        self.queries.append((bus_name, object_path, interface, name))
        if self.query_error is not None:
            raise self.query_error
        return self.descriptor

    def add_signal_match(self, interface, member, callback):
        self.matches.append((interface, member))
        self._callbacks.append(callback)
        self.subscribed.set()

    def process_events(self, timeout):
        try:
            item = self._inbox.get(timeout=timeout)
        except queue.Empty:
            return
        if item is _DISCONNECT:
            raise BusConnectionError(f"Lost D-Bus connection to {self.address}")
        if item is _WAKE:
            return
        for callback in self._callbacks:
            callback(item)

    def wakeup(self):
        self._inbox.put(_WAKE)

    def close(self):
        self.closed.set()

    # Test helpers

    def deliver(self, message: InboundMessage) -> None:
        self._inbox.put(message)

    def disconnect(self) -> None:
        self._inbox.put(_DISCONNECT)


class FakeBus:
    """ConnectionFactory handing out FakeConnections."""

    def __init__(self) -> None:
        self.descriptor: Any = list(ENGINE_DESC)
        self.query_error: Optional[Exception] = None
        self.fail_connects = 0
        self.connections: list[FakeConnection] = []
        self._cond = threading.Condition()

    def __call__(self, address: str, *, watch_signals: bool = False) -> FakeConnection:
        with self._cond:
            if self.fail_connects:
                self.fail_connects -= 1
                raise BusConnectionError(f"Failed to establish D-Bus connection to {address}")
            connection = FakeConnection(
                address, watch_signals, self.descriptor, self.query_error
            )
            self.connections.append(connection)
            self._cond.notify_all()
        return connection

    @property
    def listener_connections(self) -> list[FakeConnection]:
        with self._cond:
            return [c for c in self.connections if c.watch_signals]

    def wait_listener(self, index: int = 0, timeout: float = 2.0) -> FakeConnection:
        """Wait for the index-th listener connection to subscribe."""
        deadline = time.monotonic() + timeout
        with self._cond:
            while len([c for c in self.connections if c.watch_signals]) <= index:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise AssertionError(f"listener connection {index} never opened")
                self._cond.wait(remaining)
            connection = [c for c in self.connections if c.watch_signals][index]
        assert connection.subscribed.wait(timeout), "listener never subscribed"
        return connection


@dataclass
class IBusEnv:
    """A fake session: environment plus the files discovery reads."""

    environ: dict[str, str]
    config_root: Path
    machine_id_path: Path
    discovery_path: Path

    def write_discovery(self, contents: str) -> None:
        self.discovery_path.parent.mkdir(parents=True, exist_ok=True)
        self.discovery_path.write_text(contents)


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def ibus_env(temp_dir: Path) -> IBusEnv:
    """Session with XDG_CONFIG_HOME, DISPLAY=:0 and a machine id, but no discovery file."""
    config_root = temp_dir / "config"
    config_root.mkdir()
    machine_id_path = temp_dir / "machine-id"
    machine_id_path.write_text(f"{MACHINE_ID}\n")
    return IBusEnv(
        environ={"XDG_CONFIG_HOME": str(config_root), "DISPLAY": ":0"},
        config_root=config_root,
        machine_id_path=machine_id_path,
        discovery_path=config_root / "ibus" / "bus" / f"{MACHINE_ID}-unix-0",
    )


@pytest.fixture
def fake_bus() -> FakeBus:
    return FakeBus()


@pytest.fixture
def make_signal() -> Callable[[Any], InboundMessage]:
    """Factory for GlobalEngineChanged signals."""
    return engine_changed


@pytest.fixture
def wait_for() -> Callable[..., bool]:
    """Poll a predicate until it holds or the timeout expires."""

    def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(0.01)
        return predicate()

    return _wait_for


@pytest.fixture
def query_failure() -> QueryError:
    return QueryError("Failed to query org.freedesktop.IBus.GlobalEngine: no such property")
