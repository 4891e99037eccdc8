"""Plain text widget."""

from enum import Enum
from typing import Any


class WidgetState(str, Enum):
    IDLE = "idle"
    WARNING = "warning"


class TextWidget:
    """A single piece of text in the bar."""

    def __init__(self, name: str, instance: str, text: str = "") -> None:
        self.name = name
        self.instance = instance
        self._text = text
        self._state = WidgetState.IDLE

    @property
    def text(self) -> str:
        return self._text

    @property
    def state(self) -> WidgetState:
        return self._state

    def set_text(self, text: str) -> None:
        self._text = text

    def set_state(self, state: WidgetState) -> None:
        self._state = state

    def to_dict(self) -> dict[str, Any]:
        """Serialize as an i3bar protocol block."""
        data: dict[str, Any] = {
            "full_text": self._text,
            "name": self.name,
            "instance": self.instance,
        }
        if self._state is WidgetState.WARNING:
            data["urgent"] = True
        return data
