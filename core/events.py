"""
Change events and the UpdateNotifier protocol.

Blocks push ChangeEvents to tell the host scheduler that a block has new
state and should be re-rendered. The bar package provides a queue-backed
implementation.
"""

import time
from typing import Protocol

from pydantic import BaseModel, Field


class ChangeEvent(BaseModel):
    """Request to re-render one block."""

    block_id: str
    update_time: float = Field(default_factory=time.monotonic)


class UpdateNotifier(Protocol):
    """Abstract interface for telling the scheduler a block changed."""

    def notify(self, event: ChangeEvent) -> None:
        """Hand the event over without blocking."""
        ...


class NullNotifier:
    """No-op UpdateNotifier implementation for testing."""

    def notify(self, event: ChangeEvent) -> None:
        """Discard the event."""
        pass
