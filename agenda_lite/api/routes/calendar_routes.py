"""Calendar-events and health routes for agenda_lite."""

from __future__ import annotations

import logging
from typing import Any, Callable

from aiohttp import web

logger = logging.getLogger(__name__)


def register_calendar_routes(
    app: web.Application,
    route_path: str,
    collector: Any,
    time_provider: Callable[[], Any],
    serialize_iso: Callable[[Any], str | None],
) -> None:
    """Register the calendar-events endpoint and the health check.

    Args:
        app: aiohttp web application
        route_path: Path serving the events list (e.g. "/calendar-events")
        collector: Object exposing ``async collect(now)`` returning events
        time_provider: Callable returning the current (aware) time
        serialize_iso: Function to serialize datetime to ISO string
    """

    async def preflight(_request: web.Request) -> web.Response:
        """CORS preflight; headers are added by cors_middleware."""
        return web.Response(status=200)

    async def calendar_events(request: web.Request) -> web.Response:
        """Return upcoming events as ``{"events": [...]}``."""
        try:
            events = await collector.collect(time_provider())
        except Exception as e:
            logger.exception(
                "calendar-events request %s failed", request.get("correlation_id", "-")
            )
            return web.json_response({"error": str(e)}, status=500)

        logger.debug("calendar-events returning %d events", len(events))
        return web.json_response({"events": [event.to_api_dict() for event in events]})

    async def health_check(_request: web.Request) -> web.Response:
        """Liveness check; does not touch the calendar source."""
        return web.json_response(
            {"status": "ok", "server_time_iso": serialize_iso(time_provider())}
        )

    app.router.add_route("OPTIONS", route_path, preflight)
    app.router.add_get(route_path, calendar_events)
    app.router.add_post(route_path, calendar_events)
    app.router.add_get("/health", health_check)

    logger.debug("Registered calendar routes at %s", route_path)
