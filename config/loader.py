"""Configuration loading utilities."""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Mapping

from .block_config import IBusBlockConfig
from .defaults import CONFIG_DIR_NAME, CONFIG_FILENAMES, CONFIG_ROOT_ENV

logger = logging.getLogger(__name__)

# String literals are matched first so comment markers inside them survive
_JSONC_TOKEN_RE = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)


def strip_jsonc_comments(content: str) -> str:
    """
    Strip comments from JSONC content to convert to valid JSON.

    Handles:
    - Single-line comments: // comment
    - Multi-line comments: /* comment */

    Text inside JSON strings is left alone, so values such as
    ``"unix:path=//run/ibus"`` keep their slashes.

    Args:
        content: JSONC content string

    Returns:
        JSON string with comments removed
    """
    return _JSONC_TOKEN_RE.sub(lambda match: match.group(1) or "", content)


def load_config_file(path: Path) -> dict[str, Any] | None:
    """
    Load a config file from the given path.

    Supports both .json and .jsonc files with comment stripping.

    Args:
        path: Path to the config file

    Returns:
        Parsed config dictionary or None if file doesn't exist or is unreadable
    """
    if not path.exists():
        return None

    try:
        content = path.read_text()
        if path.suffix == ".jsonc":
            content = strip_jsonc_comments(content)
        data = json.loads(content)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to load config from %s: %s", path, e)
        return None

    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level must be an object", path)
        return None
    return data


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two configuration dictionaries.

    Args:
        base: Base configuration
        override: Override configuration (takes precedence)

    Returns:
        Merged configuration dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def default_config_paths(environ: Mapping[str, str] | None = None) -> list[Path]:
    """Candidate config files under $XDG_CONFIG_HOME (or ~/.config)."""
    env = os.environ if environ is None else environ
    root = env.get(CONFIG_ROOT_ENV)
    base = Path(root) if root else Path.home() / ".config"
    return [base / CONFIG_DIR_NAME / name for name in CONFIG_FILENAMES]


def load_config(
    path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> IBusBlockConfig:
    """
    Load the block configuration.

    An explicit path wins; otherwise the first existing default path is used.
    A missing file yields the defaults.

    Args:
        path: Config file to read
        overrides: Values merged over the file contents

    Returns:
        Validated IBusBlockConfig

    Raises:
        pydantic.ValidationError: If the merged data is not a valid config
    """
    candidates = [path] if path is not None else default_config_paths()

    config_data: dict[str, Any] = {}
    for candidate in candidates:
        loaded = load_config_file(candidate)
        if loaded is not None:
            logger.debug("Loaded config from %s", candidate)
            config_data = loaded
            break

    if overrides:
        config_data = merge_configs(config_data, overrides)

    return IBusBlockConfig.model_validate(config_data)
