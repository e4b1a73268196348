"""Event filtering, ordering and truncation for the calendar-events response."""

from __future__ import annotations

import datetime
import logging

from agenda_lite.calendar.lite_models import LiteCalendarEvent
from agenda_lite.core.config_manager import DEFAULT_MAX_EVENTS
from agenda_lite.core.timezone_utils import start_of_day

logger = logging.getLogger(__name__)


class EventFilter:
    """Filters upcoming events and shapes the final ordered window."""

    def filter_upcoming_events(
        self,
        events: list[LiteCalendarEvent],
        now: datetime.datetime,
    ) -> list[LiteCalendarEvent]:
        """Keep events that have not finished before today.

        An event is dropped when its end (or its start, if it has no resolvable
        end) is strictly before ``now`` with the time-of-day zeroed, so events
        happening today are always kept. Events whose instants could not be
        resolved are dropped.

        Args:
            events: Parsed events
            now: Naive wall-clock reference time

        Returns:
            Events in their original order
        """
        today = start_of_day(now)
        upcoming = []

        for event in events:
            reference = event.end_moment or event.start_moment
            if reference is None:
                logger.warning("Dropping event %s with unresolvable date %r", event.id, event.start)
                continue
            if reference >= today:
                upcoming.append(event)

        logger.debug("Kept %d of %d events on or after %s", len(upcoming), len(events), today.date())
        return upcoming

    def sort_and_limit_events(
        self,
        events: list[LiteCalendarEvent],
        window_size: int = DEFAULT_MAX_EVENTS,
    ) -> list[LiteCalendarEvent]:
        """Sort events by start instant (stable) and keep the first ``window_size``."""
        sorted_events = sorted(
            events, key=lambda e: e.start_moment or datetime.datetime.max
        )
        return sorted_events[:window_size]
