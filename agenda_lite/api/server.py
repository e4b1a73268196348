"""agenda_lite.api.server - aiohttp server for the calendar-events endpoint.

The server is stateless between requests: each call to the calendar-events
route fetches the ICS feed, parses and expands it, and answers with the
upcoming window. Only the pooled HTTP client outlives a request.
"""

from __future__ import annotations

import asyncio
import contextlib
import datetime
import logging
import os
import signal
from typing import Any

import httpx
from aiohttp import web

from agenda_lite.api.middleware import correlation_id_middleware, cors_middleware
from agenda_lite.api.routes import register_calendar_routes
from agenda_lite.calendar.lite_logging import configure_lite_logging, get_logging_status
from agenda_lite.core.config_manager import (
    DEFAULT_ROUTE_PATH,
    DEFAULT_SERVER_BIND,
    DEFAULT_SERVER_PORT,
    ConfigManager,
    get_config_value,
)
from agenda_lite.core.http_client import close_all_clients, get_shared_client
from agenda_lite.core.timezone_utils import now_utc as _now_utc
from agenda_lite.domain.event_collector import EventCollector

logger = logging.getLogger(__name__)


def _build_default_config_from_env() -> dict[str, Any]:
    """Load .env defaults and build the server configuration from the environment."""
    return ConfigManager().load_full_config()


def _serialize_iso(dt: datetime.datetime | None) -> str | None:
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc).isoformat().replace("+00:00", "Z")


async def _make_app(
    config: Any,
    shared_http_client: httpx.AsyncClient | None = None,
) -> web.Application:
    """Create the aiohttp application with middlewares and routes.

    Args:
        config: dict or attribute-style configuration
        shared_http_client: Optional pooled client used for the outbound fetch
    """
    app = web.Application(middlewares=[correlation_id_middleware, cors_middleware])

    collector = EventCollector(config, shared_http_client)
    route_path = get_config_value(config, "route_path", DEFAULT_ROUTE_PATH)

    register_calendar_routes(
        app=app,
        route_path=route_path,
        collector=collector,
        time_provider=_now_utc,
        serialize_iso=_serialize_iso,
    )

    async def _shutdown(_app: web.Application) -> None:
        logger.info("agenda_lite application shutting down")

    app.on_shutdown.append(_shutdown)
    return app


async def _serve(config: Any, external_stop_event: asyncio.Event | None = None) -> None:
    """Run the server until signalled to stop.

    Args:
        config: Server configuration object/dict.
        external_stop_event: Optional event to signal shutdown. If provided,
            signal handlers are NOT registered (caller owns signal handling).
    """
    stop_event = external_stop_event or asyncio.Event()

    shared_http_client = None
    try:
        shared_http_client = await get_shared_client("agenda_server")
    except RuntimeError as e:
        logger.warning("Shared HTTP client unavailable, using per-request clients: %s", e)

    app = await _make_app(config, shared_http_client)

    runner = web.AppRunner(app)
    await runner.setup()

    host = get_config_value(config, "server_bind", DEFAULT_SERVER_BIND)
    port = int(get_config_value(config, "server_port", DEFAULT_SERVER_PORT))
    site = web.TCPSite(runner, host=host, port=port)
    try:
        await site.start()
    except OSError:
        logger.exception("Could not bind %s:%d", host, port)
        await runner.cleanup()
        await close_all_clients()
        raise

    logger.info("Server started on %s:%d (pid %d)", host, port, os.getpid())

    if external_stop_event is None:
        loop = asyncio.get_running_loop()

        def _on_signal() -> None:
            logger.info("Signal received, stopping")
            stop_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, _on_signal)

    await stop_event.wait()
    logger.info("Stopping HTTP site")

    await runner.cleanup()

    try:
        await close_all_clients()
    except Exception as e:
        logger.warning("Pooled HTTP clients did not close cleanly: %s", e)

    logger.info("agenda_lite stopped")


def start_server(config: Any) -> None:
    """Configure logging and serve the calendar-events app until SIGINT/SIGTERM.

    Args:
        config: dict or dataclass-like object with keys:
            - ics_url: calendar feed URL
            - server_bind: host to bind (str)
            - server_port: port (int)
            - route_path: path of the calendar-events endpoint
            - request_timeout: outbound fetch timeout in seconds
            - max_events: response cap
            - horizon_months: recurrence expansion horizon
            - debug_logging: enable debug logging for agenda_lite (bool)
    """
    debug_mode = bool(get_config_value(config, "debug_logging", False))
    configure_lite_logging(debug_mode=debug_mode)
    logger.info("agenda_lite logging ready (debug=%s)", debug_mode)
    logger.debug("Logger levels: %s", get_logging_status())

    try:
        asyncio.run(_serve(config))
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt, server stopped")
