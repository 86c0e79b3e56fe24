"""Route modules for the rsscal server."""

from .calendar_routes import register_calendar_routes

__all__ = [
    "register_calendar_routes",
]
