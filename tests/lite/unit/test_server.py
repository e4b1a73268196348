"""Unit tests for agenda_lite.api.server start-up helpers."""

import logging
import types

import pytest

from agenda_lite.api import server

pytestmark = [pytest.mark.unit, pytest.mark.fast]


@pytest.fixture(autouse=True)
def restore_logger_levels():
    names = ("", "agenda_lite", "agenda_lite.api.server", "httpx", "aiohttp.access", "asyncio")
    saved = {name: logging.getLogger(name).level for name in names}
    root_filters = {h: list(h.filters) for h in logging.getLogger().handlers}
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler not in root_filters:
            root.removeHandler(handler)
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)
    for handler, filters in root_filters.items():
        handler.filters = filters


def test_start_server_when_debug_then_logger_levels_reported_and_serve_run(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    ran = {}

    def fake_run(coro):
        ran["name"] = coro.cr_code.co_name
        coro.close()

    monkeypatch.setattr(server, "asyncio", types.SimpleNamespace(run=fake_run))
    caplog.set_level(logging.DEBUG)

    server.start_server({"debug_logging": True})

    assert ran["name"] == "_serve"
    assert logging.getLogger("agenda_lite").level == logging.DEBUG
    assert any(r.getMessage().startswith("Logger levels: ") for r in caplog.records)


def test_start_server_when_interrupted_then_returns(monkeypatch: pytest.MonkeyPatch) -> None:
    def interrupted(coro):
        coro.close()
        raise KeyboardInterrupt

    monkeypatch.setattr(server, "asyncio", types.SimpleNamespace(run=interrupted))

    server.start_server({})
