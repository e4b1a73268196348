"""Clock helpers for agenda_lite.

Event instants are handled as naive wall-clock datetimes (TZID parameters are
not resolved), so the reference clock is exposed both as an aware UTC value and
as its naive wall-clock equivalent.
"""

from __future__ import annotations

import datetime
import logging
import os

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

TEST_TIME_ENV = "AGENDA_TEST_TIME"


def now_utc() -> datetime.datetime:
    """Return current UTC time with tzinfo.

    Can be overridden for testing via the AGENDA_TEST_TIME environment variable.
    Format: ISO 8601 datetime string (e.g., "2026-03-01T08:20:00Z"). A naive
    override is assumed to already be UTC.
    """
    test_time = os.environ.get(TEST_TIME_ENV)
    if test_time:
        try:
            dt = date_parser.isoparse(test_time)
            if dt.tzinfo is not None:
                return dt.astimezone(datetime.timezone.utc)
            return dt.replace(tzinfo=datetime.timezone.utc)
        except ValueError as e:
            logger.warning("Failed to parse %s=%r: %s", TEST_TIME_ENV, test_time, e)

    return datetime.datetime.now(datetime.timezone.utc)


def now_naive() -> datetime.datetime:
    """Return the current UTC wall-clock time without tzinfo."""
    return now_utc().replace(tzinfo=None)


def to_naive_wall_clock(dt: datetime.datetime) -> datetime.datetime:
    """Convert ``dt`` to naive UTC wall-clock time; naive input is returned as-is."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(datetime.timezone.utc).replace(tzinfo=None)


def start_of_day(dt: datetime.datetime) -> datetime.datetime:
    """Return ``dt`` with the time-of-day zeroed."""
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)
