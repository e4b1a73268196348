from collections.abc import AsyncIterator, Callable, Generator
from typing import Any

import pytest
from icalendar import Calendar, Event

from agenda_lite.core.http_client import close_all_clients


@pytest.fixture
def simple_settings() -> dict[str, Any]:
    """Minimal deterministic configuration used across lite tests."""
    return {
        "ics_url": "https://calendar.example.test/public/basic.ics",
        "request_timeout": 5,
        "max_events": 20,
        "horizon_months": 3,
        "max_occurrences_per_rule": 200,
    }


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, Any, None]:
    """Clear AGENDA_* variables so host configuration never leaks into tests."""
    for name in (
        "AGENDA_TEST_TIME",
        "AGENDA_ICS_URL",
        "AGENDA_SERVER_PORT",
        "AGENDA_WEB_PORT",
        "AGENDA_SERVER_BIND",
        "AGENDA_WEB_HOST",
        "AGENDA_MAX_EVENTS",
        "AGENDA_REQUEST_TIMEOUT",
        "AGENDA_HORIZON_MONTHS",
        "AGENDA_ROUTE_PATH",
        "AGENDA_LOG_LEVEL",
        "AGENDA_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
async def cleanup_shared_http_clients() -> AsyncIterator[None]:
    """Close shared httpx clients after every test to prevent resource leaks."""
    yield
    await close_all_clients()


# ==================== ICS Test Data Fixtures ====================


@pytest.fixture
def ics_builder() -> Callable[[list[dict[str, Any]]], str]:
    """
    Return a builder that serializes event property dicts with icalendar.

    The output is real RFC 5545 text: CRLF line endings, lines folded at 75
    octets and TEXT values escaped, which makes it good parser input.

    Usage:
        ics_builder([{"uid": "a@test", "summary": "Culto", "dtstart": date(2026, 3, 8)}])
    """

    def builder(events: list[dict[str, Any]]) -> str:
        cal = Calendar()
        cal.add("prodid", "-//Agenda Lite Test//EN")
        cal.add("version", "2.0")
        for properties in events:
            event = Event()
            for key, value in properties.items():
                event.add(key, value)
            cal.add_component(event)
        return cal.to_ical().decode("utf-8")

    return builder


@pytest.fixture
def sample_ics_simple() -> str:
    """
    Return a simple ICS calendar string with a single event next week.

    - Event: "Reunião de Líderes" on 2026-03-09 19:00-21:00 UTC
    """
    return """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Google Inc//Google Calendar 70.9054//EN
CALSCALE:GREGORIAN
BEGIN:VEVENT
UID:lideres-001@google.com
DTSTART:20260309T190000Z
DTEND:20260309T210000Z
SUMMARY:Reunião de Líderes
LOCATION:Sala 2
DESCRIPTION:Pauta: visitantes da semana
DTSTAMP:20260301T090000Z
END:VEVENT
END:VCALENDAR"""


@pytest.fixture
def sample_ics_weekly_exdate() -> str:
    """
    Return an ICS string with a weekly Monday/Wednesday series and one EXDATE.

    - RRULE:FREQ=WEEKLY;BYDAY=MO,WE;COUNT=4 starting Monday 2026-03-02 10:00 UTC
    - EXDATE removes Wednesday 2026-03-04
    """
    return """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Google Inc//Google Calendar 70.9054//EN
BEGIN:VEVENT
UID:discipulado-002@google.com
DTSTART:20260302T100000Z
DTEND:20260302T113000Z
SUMMARY:Discipulado
RRULE:FREQ=WEEKLY;BYDAY=MO,WE;COUNT=4
EXDATE:20260304T100000Z
END:VEVENT
END:VCALENDAR"""
