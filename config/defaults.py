"""Default configuration values."""

# IBus D-Bus names
IBUS_BUS_NAME = "org.freedesktop.IBus"
IBUS_OBJECT_PATH = "/org/freedesktop/IBus"
IBUS_INTERFACE = "org.freedesktop.IBus"
GLOBAL_ENGINE_PROPERTY = "GlobalEngine"
GLOBAL_ENGINE_CHANGED = "GlobalEngineChanged"

# Index of the engine name inside the IBusEngineDesc structure:
# ["IBusEngineDesc", {}, "xkb:us::eng", "English (US)", ...]
ENGINE_DESC_NAME_INDEX = 2

# Shown whenever the engine name is missing or unusable
UNKNOWN_ENGINE = "??"

# Discovery
CONFIG_ROOT_ENV = "XDG_CONFIG_HOME"
DISPLAY_ENV = "DISPLAY"
MACHINE_ID_PATH = "/etc/machine-id"
IBUS_NAMESPACE = "ibus"
# ibus-daemon always writes "unix" as the host part of the file name
SESSION_LABEL = "unix"
DISPLAY_PATTERN = r":(\d)"
ADDRESS_PATTERN = r"IBUS_ADDRESS=(.*),guid"

# Timeouts (seconds)
DEFAULT_QUERY_TIMEOUT = 5.0
DEFAULT_RECEIVE_TIMEOUT = 100.0
DEFAULT_LOCK_TIMEOUT = 1.0
DEFAULT_SHUTDOWN_TIMEOUT = 2.0

# Listener supervision
DEFAULT_RETRY_INITIAL_DELAY = 1.0
DEFAULT_RETRY_MAX_DELAY = 60.0

# Block presentation
BLOCK_NAME = "ibus"
DEFAULT_INITIAL_TEXT = "IBus"

# Config file lookup, relative to $XDG_CONFIG_HOME
CONFIG_DIR_NAME = "ibus-status"
CONFIG_FILENAMES = ("config.jsonc", "config.json")
