"""Fetch-parse-filter pipeline behind the calendar-events endpoint."""

from __future__ import annotations

import datetime
import logging
from typing import Any

import httpx

from agenda_lite.calendar.lite_fetcher import LiteICSFetcher, LiteICSFetchError
from agenda_lite.calendar.lite_models import LiteCalendarEvent, LiteICSSource
from agenda_lite.calendar.lite_parser import LiteICSParser
from agenda_lite.core.config_manager import (
    DEFAULT_ICS_URL,
    DEFAULT_MAX_EVENTS,
    DEFAULT_REQUEST_TIMEOUT,
    get_config_value,
)
from agenda_lite.core.timezone_utils import now_naive, to_naive_wall_clock

from .event_filter import EventFilter

logger = logging.getLogger(__name__)


class EventCollector:
    """Collects the upcoming events served by one request.

    Every call re-fetches and re-parses the whole feed; nothing is cached
    between calls.
    """

    def __init__(self, config: Any = None, shared_http_client: httpx.AsyncClient | None = None):
        self.config = config or {}
        self.shared_http_client = shared_http_client
        self.source = LiteICSSource(
            name="agenda",
            url=get_config_value(self.config, "ics_url", DEFAULT_ICS_URL),
            timeout=int(get_config_value(self.config, "request_timeout", DEFAULT_REQUEST_TIMEOUT)),
        )
        self.max_events = int(get_config_value(self.config, "max_events", DEFAULT_MAX_EVENTS))
        self.parser = LiteICSParser(self.config)
        self.event_filter = EventFilter()

    async def fetch_content(self) -> str:
        """Download the raw ICS document.

        Raises:
            LiteICSFetchError: For any failed fetch, including empty bodies.
        """
        async with LiteICSFetcher(self.config, self.shared_http_client) as fetcher:
            response = await fetcher.fetch_ics(self.source)

        if not response.success or response.content is None:
            raise LiteICSFetchError(
                response.error_message or f"Failed to fetch calendar: {response.status_code}"
            )

        logger.debug("Fetched %s bytes from %s", response.content_length, self.source.name)
        if not self.parser.validate_ics_content(response.content):
            logger.warning("Feed %s is not an iCalendar document; parsing anyway", self.source.name)
        return response.content

    def build_events(self, ics_content: str, now: datetime.datetime) -> list[LiteCalendarEvent]:
        """Parse, filter, sort and cap events from an already fetched document."""
        now = to_naive_wall_clock(now)
        events = self.parser.parse_ics_content(ics_content, now)
        upcoming = self.event_filter.filter_upcoming_events(events, now)
        return self.event_filter.sort_and_limit_events(upcoming, self.max_events)

    async def collect(self, now: datetime.datetime | None = None) -> list[LiteCalendarEvent]:
        """Fetch the feed and return the upcoming events window.

        Args:
            now: Reference time; defaults to the current UTC wall-clock time.

        Raises:
            LiteICSFetchError: When the feed cannot be fetched.
            LiteICSParseError: When the document is rejected by the parser.
        """
        content = await self.fetch_content()
        events = self.build_events(content, now or now_naive())
        logger.info("Collected %d upcoming events from %s", len(events), self.source.name)
        return events
