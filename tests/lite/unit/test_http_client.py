"""Unit tests for agenda_lite.core.http_client."""

import httpx
import pytest

from agenda_lite.api.middleware.correlation_id import request_id_var
from agenda_lite.core.http_client import (
    DEFAULT_HEADERS,
    close_all_clients,
    get_headers_with_correlation_id,
    get_shared_client,
)

pytestmark = [pytest.mark.unit, pytest.mark.fast]


async def test_get_shared_client_when_same_id_then_same_instance() -> None:
    first = await get_shared_client("test")
    second = await get_shared_client("test")
    other = await get_shared_client("other")

    assert first is second
    assert first is not other
    assert isinstance(first, httpx.AsyncClient)


async def test_get_shared_client_when_closed_then_recreated() -> None:
    first = await get_shared_client("test")
    await first.aclose()
    second = await get_shared_client("test")
    assert second is not first
    assert second.is_closed is False


async def test_close_all_clients_when_called_then_clients_closed() -> None:
    client = await get_shared_client("test")
    await close_all_clients()
    assert client.is_closed is True


def test_get_headers_with_correlation_id_when_no_request_then_defaults() -> None:
    assert get_headers_with_correlation_id() == DEFAULT_HEADERS


def test_get_headers_with_correlation_id_when_request_active_then_included() -> None:
    token = request_id_var.set("req-7")
    try:
        headers = get_headers_with_correlation_id()
    finally:
        request_id_var.reset(token)

    assert headers["X-Request-ID"] == "req-7"
    assert "X-Request-ID" not in DEFAULT_HEADERS
