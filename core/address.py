"""
IBus bus address discovery.

ibus-daemon writes its private bus address to
``$XDG_CONFIG_HOME/ibus/bus/<machine-id>-<host>-<display>``, where the host
part is always ``unix``. The file looks like::

    # This file is created by ibus-daemon, please do not modify it
    IBUS_ADDRESS=unix:abstract=/tmp/dbus-8EeieDfT,guid=7542d73dce451c2461a044e24bc131f4
    IBUS_DAEMON_PID=11140
"""

import logging
import os
import re
from pathlib import Path
from typing import Iterable, Mapping, Optional

from config.defaults import (
    ADDRESS_PATTERN,
    CONFIG_ROOT_ENV,
    DISPLAY_ENV,
    DISPLAY_PATTERN,
    IBUS_NAMESPACE,
    MACHINE_ID_PATH,
    SESSION_LABEL,
)

from .exceptions import DiscoveryIOError, MalformedInputError, MissingEnvError

logger = logging.getLogger(__name__)

_DISPLAY_RE = re.compile(DISPLAY_PATTERN)
_ADDRESS_RE = re.compile(ADDRESS_PATTERN)


def _read_text(path: Path) -> str:
    try:
        return path.read_text()
    except (OSError, UnicodeDecodeError) as exc:
        raise DiscoveryIOError(str(path), str(exc)) from exc


def read_machine_id(paths: Iterable[str | Path] = (MACHINE_ID_PATH,)) -> str:
    """
    Read the D-Bus machine id.

    Args:
        paths: Candidate files, tried in order

    Returns:
        The machine id with surrounding whitespace removed

    Raises:
        DiscoveryIOError: If none of the files can be read
    """
    last_error: Optional[DiscoveryIOError] = None
    for path in paths:
        try:
            return _read_text(Path(path)).strip()
        except DiscoveryIOError as exc:
            logger.debug("Machine id unavailable: %s", exc)
            last_error = exc
    if last_error is None:
        raise DiscoveryIOError("<machine-id>", "no machine id path configured")
    raise last_error


def parse_display_number(display: str) -> str:
    """Return the display digit of a ``:N`` display string."""
    match = _DISPLAY_RE.fullmatch(display)
    if match is None:
        raise MalformedInputError(
            f"Failed to extract display number from ${DISPLAY_ENV}={display!r}"
        )
    return match.group(1)


def discovery_file_path(config_root: str, machine_id: str, display_number: str) -> Path:
    """Path of the file ibus-daemon writes its address to."""
    filename = f"{machine_id}-{SESSION_LABEL}-{display_number}"
    return Path(f"{config_root}/{IBUS_NAMESPACE}/bus/{filename}")


def extract_address(contents: str) -> str:
    """Pull the bus address out of the discovery file contents."""
    match = _ADDRESS_RE.search(contents)
    if match is None:
        raise MalformedInputError(f"Failed to extract address out of {contents!r}")
    return match.group(1)


def resolve_ibus_address(
    environ: Optional[Mapping[str, str]] = None,
    machine_id_paths: Iterable[str | Path] = (MACHINE_ID_PATH,),
    address_env: Optional[str] = None,
) -> str:
    """
    Locate the address of the running ibus-daemon's bus.

    Args:
        environ: Environment to read (defaults to os.environ)
        machine_id_paths: Machine id files, tried in order
        address_env: Variable that, when set, holds the address directly

    Returns:
        The bus address, exactly as written by the daemon

    Raises:
        MissingEnvError: $XDG_CONFIG_HOME or $DISPLAY is not set
        DiscoveryIOError: The machine id or discovery file cannot be read
        MalformedInputError: $DISPLAY or the discovery file has an unexpected shape
    """
    env = os.environ if environ is None else environ

    if address_env and env.get(address_env):
        logger.debug("Using bus address from $%s", address_env)
        return env[address_env]

    config_root = env.get(CONFIG_ROOT_ENV)
    if config_root is None:
        raise MissingEnvError(CONFIG_ROOT_ENV)

    machine_id = read_machine_id(machine_id_paths)

    # On sway, $DISPLAY only appears once xwayland starts, which can be after
    # the bar itself was launched.
    display = env.get(DISPLAY_ENV)
    if display is None:
        raise MissingEnvError(DISPLAY_ENV, "Try restarting the bar if on sway")
    display_number = parse_display_number(display)

    path = discovery_file_path(config_root, machine_id, display_number)
    address = extract_address(_read_text(path))
    logger.debug("Resolved IBus address %s from %s", address, path)
    return address
