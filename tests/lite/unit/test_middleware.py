"""Unit tests for the correlation ID and CORS middlewares."""

import logging

import pytest
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from agenda_lite.api.middleware import (
    CORS_HEADERS,
    correlation_id_middleware,
    cors_middleware,
    get_request_id,
    request_id_var,
)
from agenda_lite.calendar.lite_logging import CorrelationIdFilter

pytestmark = [pytest.mark.unit, pytest.mark.fast]


def _make_app() -> web.Application:
    app = web.Application(middlewares=[correlation_id_middleware, cors_middleware])

    async def echo(_request: web.Request) -> web.Response:
        return web.json_response({"request_id": get_request_id()})

    async def forbidden(_request: web.Request) -> web.Response:
        raise web.HTTPForbidden()

    app.router.add_get("/echo", echo)
    app.router.add_get("/forbidden", forbidden)
    return app


async def test_correlation_id_when_header_provided_then_propagated() -> None:
    async with TestClient(TestServer(_make_app())) as client:
        resp = await client.get("/echo", headers={"X-Request-ID": "abc-123"})
        body = await resp.json()

    assert body["request_id"] == "abc-123"
    assert resp.headers["X-Request-ID"] == "abc-123"


async def test_correlation_id_when_only_correlation_header_then_used() -> None:
    async with TestClient(TestServer(_make_app())) as client:
        resp = await client.get("/echo", headers={"X-Correlation-ID": "corr-9"})
        body = await resp.json()

    assert body["request_id"] == "corr-9"


async def test_correlation_id_when_absent_then_generated_uuid() -> None:
    async with TestClient(TestServer(_make_app())) as client:
        resp = await client.get("/echo")
        body = await resp.json()

    assert len(body["request_id"]) == 36
    assert resp.headers["X-Request-ID"] == body["request_id"]


def test_get_request_id_when_outside_request_then_placeholder() -> None:
    assert get_request_id() == "no-request-id"


async def test_cors_when_success_response_then_headers_present() -> None:
    async with TestClient(TestServer(_make_app())) as client:
        resp = await client.get("/echo")

    for name, value in CORS_HEADERS.items():
        assert resp.headers[name] == value


async def test_cors_when_http_exception_or_unknown_route_then_headers_present() -> None:
    async with TestClient(TestServer(_make_app())) as client:
        forbidden = await client.get("/forbidden")
        missing = await client.get("/nope")

    assert forbidden.status == 403
    assert missing.status == 404
    assert forbidden.headers["Access-Control-Allow-Origin"] == "*"
    assert missing.headers["Access-Control-Allow-Origin"] == "*"


def test_correlation_filter_when_record_logged_then_request_id_attached() -> None:
    record = logging.LogRecord("agenda_lite", logging.INFO, __file__, 1, "msg", None, None)
    token = request_id_var.set("req-42")
    try:
        assert CorrelationIdFilter().filter(record) is True
    finally:
        request_id_var.reset(token)
    assert record.request_id == "req-42"
