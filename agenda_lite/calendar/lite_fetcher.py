"""Download of the calendar feed.

One GET per request and no retries: the endpoint either gets the whole
document or turns the failure into its error response.
"""

import logging
from typing import Any, Optional
from urllib.parse import urlparse

import httpx

from agenda_lite.core.config_manager import DEFAULT_REQUEST_TIMEOUT, get_config_value
from agenda_lite.core.http_client import get_headers_with_correlation_id

from .lite_models import LiteICSResponse, LiteICSSource

logger = logging.getLogger(__name__)

_ACCEPTED_CONTENT_TYPES = ("text/calendar", "text/plain")


class LiteICSFetchError(Exception):
    """The calendar feed could not be downloaded."""


class LiteICSHTTPError(LiteICSFetchError):
    """The feed answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class LiteICSNetworkError(LiteICSFetchError):
    """DNS, connect or TLS failure while reaching the feed."""


class LiteICSTimeoutError(LiteICSFetchError):
    """The feed did not answer within the source timeout."""


class LiteICSFetcher:
    """Async context manager that downloads ICS documents.

    When a shared client is injected it is used as-is and left open on exit;
    otherwise the fetcher owns a private client for the duration of the block.
    """

    def __init__(self, settings: Any = None, shared_client: Optional[httpx.AsyncClient] = None) -> None:
        self.settings = settings or {}
        self.client: Optional[httpx.AsyncClient] = shared_client
        self._owns_client = shared_client is None

    async def __aenter__(self) -> "LiteICSFetcher":
        await self._ensure_client()
        return self

    async def __aexit__(self, _exc_type: Any, _exc_val: Any, _exc_tb: Any) -> None:
        if self._owns_client and self.client is not None:
            if not self.client.is_closed:
                await self.client.aclose()
                logger.debug("Closed private fetch client")
            self.client = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self.client is None or self.client.is_closed:
            timeout = float(get_config_value(self.settings, "request_timeout", DEFAULT_REQUEST_TIMEOUT))
            self.client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), follow_redirects=True)
            self._owns_client = True
        return self.client

    @staticmethod
    def _is_allowed_url(url: str) -> bool:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            logger.debug("Rejecting feed URL %r (scheme=%r)", url, parsed.scheme)
            return False
        return True

    async def fetch_ics(self, source: LiteICSSource) -> LiteICSResponse:
        """GET ``source.url`` and wrap the body.

        Returns:
            A response with ``success=False`` for a rejected URL (status 403)
            or an empty body.

        Raises:
            LiteICSHTTPError: Non-2xx status, message
                ``"Failed to fetch calendar: <status>"``
            LiteICSTimeoutError: No answer within ``source.timeout`` seconds
            LiteICSNetworkError: The host could not be reached
            LiteICSFetchError: Anything else that went wrong during the GET
        """
        client = await self._ensure_client()

        if not self._is_allowed_url(source.url):
            logger.error("Refusing to fetch calendar from %s", source.url)
            return LiteICSResponse(
                success=False, error_message="URL blocked for security reasons", status_code=403
            )

        headers = {**get_headers_with_correlation_id(), **source.custom_headers}

        logger.debug("GET %s (timeout %ss)", source.url, source.timeout)
        try:
            response = await client.get(source.url, headers=headers, timeout=source.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("Calendar source %s answered %d", source.url, status)
            raise LiteICSHTTPError(f"Failed to fetch calendar: {status}", status) from e
        except httpx.TimeoutException as e:
            logger.error("Calendar source %s timed out after %ss", source.url, source.timeout)
            raise LiteICSTimeoutError(f"Request timeout after {source.timeout}s") from e
        except httpx.NetworkError as e:
            logger.error("Calendar source %s unreachable: %s", source.url, e)
            raise LiteICSNetworkError(f"Network error: {e}") from e
        except Exception as e:
            logger.exception("GET %s failed", source.url)
            raise LiteICSFetchError(f"Unexpected error: {e}") from e

        return self._to_ics_response(response)

    def _to_ics_response(self, http_response: httpx.Response) -> LiteICSResponse:
        headers = dict(http_response.headers)
        body = http_response.text

        content_type = headers.get("content-type", "").lower()
        if content_type and not content_type.startswith(_ACCEPTED_CONTENT_TYPES):
            logger.warning("Calendar source sent Content-Type %s", content_type)

        if not body.strip():
            logger.error("Calendar source returned an empty body")
            return LiteICSResponse(
                success=False,
                status_code=http_response.status_code,
                error_message="Empty content received",
                headers=headers,
            )

        return LiteICSResponse(
            success=True,
            content=body,
            status_code=http_response.status_code,
            headers=headers,
        )
