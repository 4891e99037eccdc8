"""
Configuration module for the IBus status block.

Exports the configuration models and loader functions.
"""

from .block_config import DiscoveryConfig, IBusBlockConfig, RetryConfig
from .defaults import DEFAULT_INITIAL_TEXT, UNKNOWN_ENGINE
from .loader import (
    default_config_paths,
    load_config,
    load_config_file,
    merge_configs,
    strip_jsonc_comments,
)

__all__ = [
    # Constants
    "DEFAULT_INITIAL_TEXT",
    "UNKNOWN_ENGINE",
    # Config models
    "IBusBlockConfig",
    "DiscoveryConfig",
    "RetryConfig",
    # Loader functions
    "load_config",
    "load_config_file",
    "merge_configs",
    "strip_jsonc_comments",
    "default_config_paths",
]
