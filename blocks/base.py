"""
Block interface seen by the bar scheduler.
"""

from typing import Optional, Protocol, Sequence

from pydantic import BaseModel

from .widget import TextWidget


class ClickEvent(BaseModel):
    """A click on a block, as reported by i3bar/swaybar."""

    name: Optional[str] = None
    instance: Optional[str] = None
    button: int = 1
    x: Optional[int] = None
    y: Optional[int] = None


class Block(Protocol):
    """Lifecycle every block exposes to the scheduler."""

    def identifier(self) -> str:
        """Stable id used to route ChangeEvents and clicks."""
        ...

    def update(self) -> Optional[float]:
        """Refresh state; return seconds until the next poll, or None."""
        ...

    def view(self) -> Sequence[TextWidget]:
        """Widgets to render."""
        ...

    def click(self, event: ClickEvent) -> None:
        """Handle a click on one of the block's widgets."""
        ...
