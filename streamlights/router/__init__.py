"""Notification routing: color resolution, palettes and event → command mapping."""

from streamlights.router.colors import ColorResolver, ColorTable, clean_user_input, load_color_table
from streamlights.router.palettes import EventCategory, PaletteTable
from streamlights.router.router import NotificationRouter, RouteResult

__all__ = [
    "ColorResolver",
    "ColorTable",
    "EventCategory",
    "NotificationRouter",
    "PaletteTable",
    "RouteResult",
    "clean_user_input",
    "load_color_table",
]
