"""Route registration for the agenda_lite aiohttp application."""

from .calendar_routes import register_calendar_routes

__all__ = ["register_calendar_routes"]
