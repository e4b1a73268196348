"""Unit tests for agenda_lite.domain.event_collector."""

import logging
from datetime import datetime, timezone

import httpx
import pytest

from agenda_lite.calendar.lite_fetcher import LiteICSFetchError, LiteICSHTTPError
from agenda_lite.core.config_manager import DEFAULT_ICS_URL
from agenda_lite.domain.event_collector import EventCollector

pytestmark = [pytest.mark.unit]

NOW = datetime(2026, 3, 2, 12, 0, 0)


def _many_events(count: int) -> str:
    blocks = "".join(
        f"BEGIN:VEVENT\r\nUID:e{i}\r\nSUMMARY:Evento {i}\r\n"
        f"DTSTART:202603{10 + i % 15:02d}T{8 + i % 10:02d}0000Z\r\nEND:VEVENT\r\n"
        for i in range(count)
    )
    return f"BEGIN:VCALENDAR\r\n{blocks}END:VCALENDAR\r\n"


def test_collector_when_no_config_then_default_source() -> None:
    collector = EventCollector()
    assert collector.source.url == DEFAULT_ICS_URL
    assert collector.source.timeout == 10
    assert collector.max_events == 20


def test_build_events_when_past_and_future_then_only_upcoming_sorted() -> None:
    ics = (
        "BEGIN:VCALENDAR\r\n"
        "BEGIN:VEVENT\r\nUID:future\r\nSUMMARY:Futuro\r\nDTSTART:20260310T190000Z\r\nEND:VEVENT\r\n"
        "BEGIN:VEVENT\r\nUID:past\r\nSUMMARY:Passado\r\nDTSTART:20260220T190000Z\r\nEND:VEVENT\r\n"
        "BEGIN:VEVENT\r\nUID:today\r\nSUMMARY:Hoje\r\nDTSTART:20260302T070000Z\r\nEND:VEVENT\r\n"
        "END:VCALENDAR\r\n"
    )
    events = EventCollector().build_events(ics, NOW)
    assert [e.id for e in events] == ["today", "future"]


def test_build_events_when_more_than_max_then_capped() -> None:
    events = EventCollector({"max_events": 5}).build_events(_many_events(30), NOW)
    assert len(events) == 5
    starts = [e.start_moment for e in events]
    assert starts == sorted(starts)


def test_build_events_when_aware_now_then_converted_to_wall_clock() -> None:
    ics = (
        "BEGIN:VCALENDAR\r\nBEGIN:VEVENT\r\nUID:late\r\nSUMMARY:Tarde\r\n"
        "DTSTART:20260302T230000Z\r\nEND:VEVENT\r\nEND:VCALENDAR\r\n"
    )
    aware_now = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
    assert [e.id for e in EventCollector().build_events(ics, aware_now)] == ["late"]


async def test_collect_when_source_returns_error_then_http_error(simple_settings: dict) -> None:
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(500))) as client:
        collector = EventCollector(simple_settings, client)
        with pytest.raises(LiteICSHTTPError, match="Failed to fetch calendar: 500"):
            await collector.collect(NOW)


async def test_collect_when_body_empty_then_fetch_error(simple_settings: dict) -> None:
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200))) as client:
        collector = EventCollector(simple_settings, client)
        with pytest.raises(LiteICSFetchError, match="Empty content received"):
            await collector.collect(NOW)


async def test_collect_when_feed_ok_then_events_returned(simple_settings: dict, sample_ics_simple: str) -> None:
    handler = lambda r: httpx.Response(200, text=sample_ics_simple)  # noqa: E731
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        events = await EventCollector(simple_settings, client).collect(NOW)

    assert [e.id for e in events] == ["lideres-001@google.com"]


async def test_collect_when_body_not_icalendar_then_warned_and_empty(
    simple_settings: dict, caplog: pytest.LogCaptureFixture
) -> None:
    handler = lambda r: httpx.Response(200, text="<html>Calendar not public</html>")  # noqa: E731
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with caplog.at_level(logging.WARNING, logger="agenda_lite.domain.event_collector"):
            events = await EventCollector(simple_settings, client).collect(NOW)

    assert events == []
    assert any("not an iCalendar document" in r.getMessage() for r in caplog.records)
