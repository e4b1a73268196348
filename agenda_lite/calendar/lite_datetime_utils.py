"""Date and date-time value parsing for raw ICS lines.

Values are resolved naively: a trailing ``Z`` is carried through to the
rendered string, but ``TZID`` parameters are ignored and no offset arithmetic
is performed. Instants are therefore naive wall-clock datetimes.
"""

import logging
from datetime import datetime
from typing import Optional

from .lite_models import LiteDateValue

logger = logging.getLogger(__name__)

ALL_DAY_MARKER = "VALUE=DATE:"
DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _to_datetime(
    year: str, month: str, day: str, hour: str = "0", minute: str = "0", second: str = "0"
) -> Optional[datetime]:
    try:
        return datetime(int(year), int(month), int(day), int(hour), int(minute), int(second))
    except ValueError:
        return None


def _parse_date_only(raw: str) -> LiteDateValue:
    year, month, day = raw[0:4], raw[4:6], raw[6:8]
    moment = _to_datetime(year, month, day)
    if moment is None:
        logger.debug("Unparseable ICS date value %r", raw)
    return LiteDateValue(value=f"{year}-{month}-{day}", all_day=True, moment=moment)


def parse_ics_date_value(line: str) -> LiteDateValue:
    """Resolve a DTSTART/DTEND line or a bare EXDATE/UNTIL value.

    ``DTSTART;VALUE=DATE:20260301`` and bare 8 character values are all-day
    dates rendered ``2026-03-01``. Anything else is read positionally as
    ``YYYYMMDDTHHMMSS[Z]`` and rendered ``2026-03-01T10:00:00[Z]``.

    Never raises: when the digits do not form a real date the rendered value is
    still returned and ``moment`` is None.
    """
    raw = line.rsplit(":", 1)[-1].strip()

    if ALL_DAY_MARKER in line or len(raw) == 8:
        return _parse_date_only(raw)

    is_utc = raw.endswith("Z")
    year, month, day = raw[0:4], raw[4:6], raw[6:8]
    hour, minute, second = raw[9:11], raw[11:13], raw[13:15]
    value = f"{year}-{month}-{day}T{hour}:{minute}:{second}{'Z' if is_utc else ''}"

    moment = _to_datetime(year, month, day, hour, minute, second)
    if moment is None:
        logger.debug("Unparseable ICS date-time value %r", raw)

    return LiteDateValue(value=value, all_day=False, is_utc=is_utc, moment=moment)


def render_ics_moment(moment: datetime, all_day: bool, is_utc: bool = False) -> str:
    """Render an instant the same way ``parse_ics_date_value`` renders values."""
    if all_day:
        return moment.strftime(DATE_FORMAT)
    return moment.strftime(DATETIME_FORMAT) + ("Z" if is_utc else "")
