"""Status bar blocks."""

from .base import Block, ClickEvent
from .ibus import IBusBlock, open_dbus_connection
from .widget import TextWidget, WidgetState

__all__ = [
    "Block",
    "ClickEvent",
    "IBusBlock",
    "TextWidget",
    "WidgetState",
    "open_dbus_connection",
]
