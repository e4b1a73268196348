"""Shared HTTP client manager.

Keeps one pooled ``httpx.AsyncClient`` per client id so repeated calendar
fetches reuse connections instead of creating a client per request.
"""

import asyncio
import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

_shared_clients: dict[str, httpx.AsyncClient] = {}
_client_lock = asyncio.Lock()

_DEFAULT_LIMITS = httpx.Limits(
    max_connections=10,
    max_keepalive_connections=5,
)

_DEFAULT_TIMEOUT = httpx.Timeout(
    connect=10.0,
    read=10.0,
    write=10.0,
    pool=10.0,
)

DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": "agenda-lite/0.1",
    "Accept": "text/calendar, text/plain, */*",
    "Accept-Language": "pt-BR,pt;q=0.9,en;q=0.8",
}


def get_headers_with_correlation_id() -> dict[str, str]:
    """Get default headers with the current request's correlation ID, if any."""
    headers = DEFAULT_HEADERS.copy()

    from agenda_lite.api.middleware.correlation_id import get_request_id

    request_id = get_request_id()
    if request_id != "no-request-id":
        headers["X-Request-ID"] = request_id

    return headers


async def get_shared_client(
    client_id: str = "default",
    limits: Optional[httpx.Limits] = None,
    timeout: Optional[httpx.Timeout] = None,
) -> httpx.AsyncClient:
    """Return the pooled client registered as ``client_id``, creating it if needed.

    A client that was closed elsewhere is replaced. ``limits`` and ``timeout``
    only apply when a new client is created.

    Raises:
        RuntimeError: If httpx refuses to build the client
    """
    async with _client_lock:
        client = _shared_clients.get(client_id)
        if client is not None and not client.is_closed:
            return client

        pool_limits = limits or _DEFAULT_LIMITS
        logger.debug(
            "Opening pooled client %r (max_connections=%s, keepalive=%s)",
            client_id,
            pool_limits.max_connections,
            pool_limits.max_keepalive_connections,
        )
        try:
            client = httpx.AsyncClient(
                limits=pool_limits,
                timeout=timeout or _DEFAULT_TIMEOUT,
                headers=DEFAULT_HEADERS,
                follow_redirects=True,
            )
        except Exception as e:
            logger.exception("Could not open pooled client %r", client_id)
            raise RuntimeError(f"Failed to create shared HTTP client: {e}") from e

        _shared_clients[client_id] = client
        logger.info("Opened pooled HTTP client %r", client_id)
        return client


async def close_all_clients() -> None:
    """Close and forget every pooled client; used on shutdown and between tests."""
    async with _client_lock:
        for client_id, client in _shared_clients.items():
            if client.is_closed:
                continue
            try:
                await client.aclose()
            except Exception as e:
                logger.warning("Pooled client %r did not close cleanly: %s", client_id, e)
        _shared_clients.clear()
