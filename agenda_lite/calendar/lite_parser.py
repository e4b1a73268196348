"""Line-oriented ICS parser for agenda_lite.

The document is processed as a small pipeline: unfold continuation lines,
split into VEVENT blocks, extract fields per block by line prefix, resolve
date values, expand RRULEs, and drop EXDATE-excluded occurrences.
"""

import logging
import re
from datetime import datetime, timedelta
from typing import Any, Optional

from agenda_lite.core.config_manager import DEFAULT_MAX_ICS_SIZE_BYTES, get_config_value

from .lite_datetime_utils import parse_ics_date_value, render_ics_moment
from .lite_models import LiteCalendarEvent, LiteDateValue, LiteVEventBlock
from .lite_rrule_expander import LiteRRuleExpander, LiteRRuleParseError, parse_rrule_string

logger = logging.getLogger(__name__)

EVENT_BEGIN = "BEGIN:VEVENT"
EVENT_END = "END:VEVENT"

_ESCAPE_RE = re.compile(r"\\([\\;,nN])")
_ESCAPES = {"\\": "\\", ";": ";", ",": ",", "n": "\n", "N": "\n"}


class LiteICSParseError(Exception):
    """Base exception for ICS parsing errors."""


class LiteICSContentTooLargeError(LiteICSParseError):
    """ICS document exceeds the configured size limit."""


def unfold_ics_lines(text: str) -> str:
    """Normalize line endings to ``\\n`` and merge folded continuation lines.

    A physical line starting with a space or tab continues the previous logical
    line; the single leading whitespace character is dropped.
    """
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    return re.sub(r"\n[ \t]", "", normalized)


def split_event_blocks(text: str) -> list[str]:
    """Split an unfolded document into the bodies of its VEVENT blocks.

    The header before the first ``BEGIN:VEVENT`` is discarded. Returns an empty
    list when the document has no events.
    """
    segments = text.split(EVENT_BEGIN)
    return [segment.split(EVENT_END, 1)[0] for segment in segments[1:]]


def unescape_ics_text(value: str) -> str:
    r"""Decode RFC 5545 TEXT escapes (``\n``, ``\N``, ``\,``, ``\;``, ``\\``).

    Runs as a single pass, so an escaped backslash followed by ``n`` stays a
    literal backslash and ``n``.
    """
    return _ESCAPE_RE.sub(lambda m: _ESCAPES[m.group(1)], value)


def _value_after_colon(line: str) -> str:
    return line.split(":", 1)[1].strip() if ":" in line else ""


def extract_event_fields(block: str, index: int) -> LiteVEventBlock:
    """Extract the fields of one VEVENT block body.

    Args:
        block: Text between ``BEGIN:VEVENT`` and ``END:VEVENT``
        index: 1-based position of the block, used for the fallback ID
    """
    fields = LiteVEventBlock(index=index)

    for line in block.split("\n"):
        if line.startswith("UID:"):
            fields.uid = line[len("UID:"):].strip()
        elif line.startswith("SUMMARY"):
            fields.summary = unescape_ics_text(_value_after_colon(line))
        elif line.startswith("DESCRIPTION"):
            fields.description = unescape_ics_text(_value_after_colon(line))
        elif line.startswith("LOCATION"):
            fields.location = unescape_ics_text(_value_after_colon(line))
        elif line.startswith("DTSTART"):
            fields.dtstart = line.strip()
        elif line.startswith("DTEND"):
            fields.dtend = line.strip()
        elif line.startswith("RRULE:"):
            fields.rrule = line[len("RRULE:"):].strip()
        elif line.startswith("EXDATE"):
            fields.exdates.extend(v.strip() for v in _value_after_colon(line).split(",") if v.strip())

    return fields


class LiteICSParser:
    """Turns raw ICS text into concrete, expanded calendar occurrences."""

    def __init__(self, settings: Any = None) -> None:
        self.settings = settings or {}
        self.max_ics_size_bytes = int(
            get_config_value(self.settings, "max_ics_size_bytes", DEFAULT_MAX_ICS_SIZE_BYTES)
        )
        self.expander = LiteRRuleExpander(self.settings)

    def _validate_ics_size(self, ics_content: str) -> None:
        size = len(ics_content.encode("utf-8"))
        if size > self.max_ics_size_bytes:
            raise LiteICSContentTooLargeError(
                f"ICS content too large: {size} bytes (limit {self.max_ics_size_bytes})"
            )

    def parse_ics_content(self, ics_content: str, now: datetime) -> list[LiteCalendarEvent]:
        """Parse an ICS document into calendar occurrences.

        Args:
            ics_content: Raw ICS document text
            now: Naive wall-clock reference time; recurrences expand up to
                ``now`` plus the configured horizon

        Returns:
            Events in document order (recurring events expanded in place).
            Nothing is filtered by date here.

        Raises:
            LiteICSContentTooLargeError: If the document exceeds the size limit.
        """
        self._validate_ics_size(ics_content)

        blocks = split_event_blocks(unfold_ics_lines(ics_content))
        horizon = self.expander.horizon_for(now)

        events: list[LiteCalendarEvent] = []
        skipped = 0

        for index, block in enumerate(blocks, start=1):
            fields = extract_event_fields(block, index)

            if not fields.summary:
                logger.debug("Skipping VEVENT #%d without SUMMARY", index)
                skipped += 1
                continue
            if not fields.dtstart:
                logger.debug("Skipping VEVENT #%d (%s) without DTSTART", index, fields.event_id)
                skipped += 1
                continue

            if fields.is_recurring:
                events.extend(self._expand_recurring(fields, horizon))
            else:
                events.append(self._build_single(fields))

        logger.debug(
            "Parsed %d VEVENT blocks into %d events (%d skipped)",
            len(blocks),
            len(events),
            skipped,
        )
        return events

    def _build_single(self, fields: LiteVEventBlock) -> LiteCalendarEvent:
        start = parse_ics_date_value(fields.dtstart)
        end = parse_ics_date_value(fields.dtend) if fields.dtend else start

        return self._make_event(
            fields,
            event_id=fields.event_id,
            start=start.value,
            end=end.value,
            all_day=start.all_day,
            start_moment=start.moment,
            end_moment=end.moment,
        )

    def _expand_recurring(
        self, fields: LiteVEventBlock, horizon: datetime
    ) -> list[LiteCalendarEvent]:
        start = parse_ics_date_value(fields.dtstart)
        if start.moment is None:
            logger.warning(
                "Dropping recurring event %s: unparseable DTSTART %r",
                fields.event_id,
                fields.dtstart,
            )
            return []

        try:
            rule = parse_rrule_string(fields.rrule)
        except LiteRRuleParseError as e:
            logger.warning("Dropping recurring event %s: %s", fields.event_id, e)
            return []

        try:
            duration = self._duration(start, fields.dtend)
            occurrences = self.expander.expand(rule, start.moment, duration, horizon)
        except (OverflowError, ValueError) as e:
            # datetime arithmetic left years 1..9999 (e.g. DTEND:99991231T000000)
            logger.warning("Dropping recurring event %s: date out of range (%s)", fields.event_id, e)
            return []

        excluded = {parse_ics_date_value(ex).value for ex in fields.exdates}

        events = []
        for occ_start, occ_end in occurrences:
            rendered_start = render_ics_moment(occ_start, start.all_day, start.is_utc)
            if rendered_start in excluded:
                logger.debug("EXDATE excludes %s occurrence %s", fields.event_id, rendered_start)
                continue

            events.append(
                self._make_event(
                    fields,
                    event_id=f"{fields.event_id}_{rendered_start}",
                    start=rendered_start,
                    end=render_ics_moment(occ_end, start.all_day, start.is_utc),
                    all_day=start.all_day,
                    start_moment=occ_start,
                    end_moment=occ_end,
                )
            )

        return events

    @staticmethod
    def _duration(start: LiteDateValue, dtend: str) -> timedelta:
        if not dtend or start.moment is None:
            return timedelta(0)
        end = parse_ics_date_value(dtend)
        if end.moment is None:
            return timedelta(0)
        return end.moment - start.moment

    @staticmethod
    def _make_event(
        fields: LiteVEventBlock,
        *,
        event_id: str,
        start: str,
        end: str,
        all_day: bool,
        start_moment: Optional[datetime],
        end_moment: Optional[datetime],
    ) -> LiteCalendarEvent:
        return LiteCalendarEvent(
            id=event_id,
            summary=fields.summary,
            description=fields.description or None,
            location=fields.location or None,
            start=start,
            end=end,
            all_day=all_day,
            start_moment=start_moment,
            end_moment=end_moment,
        )

    def validate_ics_content(self, ics_content: str) -> bool:
        """Basic sanity check that ``ics_content`` looks like an iCalendar document."""
        if not ics_content or not ics_content.strip():
            logger.debug("Empty ICS content")
            return False
        if "BEGIN:VCALENDAR" not in ics_content:
            logger.debug("Missing BEGIN:VCALENDAR marker")
            return False
        return True
