"""
Status bar host support.

Logging setup and the queue that carries block change events to the
scheduler loop.
"""

from .logging_config import log_timing, setup_logging
from .notifier import QueueNotifier

__all__ = [
    "setup_logging",
    "log_timing",
    "QueueNotifier",
]
