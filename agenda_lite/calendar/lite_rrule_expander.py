"""RRULE expansion for the agenda_lite ICS parser.

Supports FREQ (DAILY, WEEKLY, MONTHLY, YEARLY), INTERVAL, COUNT, UNTIL and
BYDAY under WEEKLY. Expansion is always bounded by a horizon and by a maximum
number of occurrences, so the work per rule does not depend on how far in the
past the series started.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from dateutil.relativedelta import relativedelta

from agenda_lite.core.config_manager import (
    DEFAULT_HORIZON_MONTHS,
    DEFAULT_MAX_OCCURRENCES_PER_RULE,
    get_config_value,
)

from .lite_datetime_utils import parse_ics_date_value
from .lite_models import LiteRecurrenceRule

logger = logging.getLogger(__name__)

SUPPORTED_FREQUENCIES = ("DAILY", "WEEKLY", "MONTHLY", "YEARLY")

# Sunday-based day offsets, matching the calendar week the BYDAY roll-back uses
WEEKDAY_OFFSETS: dict[str, int] = {"SU": 0, "MO": 1, "TU": 2, "WE": 3, "TH": 4, "FR": 5, "SA": 6}


class LiteRRuleExpansionError(Exception):
    """Base exception for RRULE expansion errors."""


class LiteRRuleParseError(LiteRRuleExpansionError):
    """Error parsing RRULE string."""


@dataclass
class RRuleExpanderConfig:
    """Configuration for RRULE expansion."""

    max_occurrences_per_rule: int = DEFAULT_MAX_OCCURRENCES_PER_RULE
    horizon_months: int = DEFAULT_HORIZON_MONTHS

    @classmethod
    def from_settings(cls, settings: Any) -> "RRuleExpanderConfig":
        """Extract RRULE configuration from a settings object or dict."""
        return cls(
            max_occurrences_per_rule=int(
                get_config_value(settings, "max_occurrences_per_rule", DEFAULT_MAX_OCCURRENCES_PER_RULE)
            ),
            horizon_months=int(get_config_value(settings, "horizon_months", DEFAULT_HORIZON_MONTHS)),
        )


def parse_rrule_string(rrule_string: str) -> LiteRecurrenceRule:
    """Parse an RRULE value (e.g. ``FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE``).

    Keys are case-insensitive. Unknown keys are ignored. FREQ is kept verbatim
    (upper-cased) even when unsupported; the expander decides what to do with it.

    Raises:
        LiteRRuleParseError: If the value is empty, lacks FREQ, or carries
            non-integer COUNT/INTERVAL.
    """
    if not rrule_string or not rrule_string.strip():
        raise LiteRRuleParseError("Empty RRULE string")

    params: dict[str, str] = {}
    for part in rrule_string.strip().split(";"):
        if "=" not in part:
            continue
        key, value = part.split("=", 1)
        params[key.strip().upper()] = value.strip()

    freq = params.get("FREQ", "").upper()
    if not freq:
        raise LiteRRuleParseError(f"RRULE missing required FREQ parameter: {rrule_string}")

    try:
        interval = int(params["INTERVAL"]) if params.get("INTERVAL") else 1
        count = int(params["COUNT"]) if params.get("COUNT") else None
    except ValueError as e:
        raise LiteRRuleParseError(f"Invalid RRULE format: {rrule_string}") from e

    until = None
    if params.get("UNTIL"):
        until = parse_ics_date_value(params["UNTIL"]).moment
        if until is None:
            logger.debug("Ignoring unparseable UNTIL in %r", rrule_string)

    byday = [day.strip().upper() for day in params.get("BYDAY", "").split(",") if day.strip()]

    return LiteRecurrenceRule(
        freq=freq,
        interval=max(interval, 1),
        count=count,
        until=until,
        byday=byday,
    )


class LiteRRuleExpander:
    """Expands a decoded recurrence rule into concrete (start, end) instants."""

    def __init__(self, settings: Any = None):
        config = RRuleExpanderConfig.from_settings(settings or {})
        self.max_occurrences = config.max_occurrences_per_rule
        self.horizon_months = config.horizon_months

    def horizon_for(self, now: datetime) -> datetime:
        """Return the furthest instant an occurrence may start at."""
        return now + relativedelta(months=self.horizon_months)

    def expand(
        self,
        rule: LiteRecurrenceRule,
        start: datetime,
        duration: timedelta,
        horizon: datetime,
    ) -> list[tuple[datetime, datetime]]:
        """Expand ``rule`` from the series start up to the effective end limit.

        Args:
            rule: Decoded RRULE
            start: Start instant of the source event (series start)
            duration: Fixed per-occurrence duration (DTEND - DTSTART)
            horizon: Hard upper bound for occurrence starts

        Returns:
            Occurrences ordered by start. An unsupported FREQ stops expansion
            immediately and returns whatever was generated so far.
        """
        max_count = rule.count if rule.count is not None else self.max_occurrences
        end_limit = rule.until if rule.until is not None and rule.until < horizon else horizon

        occurrences: list[tuple[datetime, datetime]] = []
        step = 0
        anchor = start

        while len(occurrences) < max_count and anchor <= end_limit:
            if rule.freq not in SUPPORTED_FREQUENCIES:
                logger.debug("Unsupported RRULE FREQ=%s; stopping expansion", rule.freq)
                break

            if rule.freq == "WEEKLY" and rule.byday:
                for occ_start in self._week_occurrences(anchor, start, rule.byday):
                    if start <= occ_start <= end_limit and len(occurrences) < max_count:
                        occurrences.append((occ_start, occ_start + duration))
            else:
                occurrences.append((anchor, anchor + duration))

            step += 1
            anchor = self._advance(start, rule, step)

        logger.debug(
            "Expanded FREQ=%s from %s: %d occurrences (limit %s)",
            rule.freq,
            start.isoformat(),
            len(occurrences),
            end_limit.isoformat(),
        )
        return occurrences

    def _week_occurrences(
        self, anchor: datetime, series_start: datetime, byday: list[str]
    ) -> list[datetime]:
        """Instants for each BYDAY code in the Sunday-started week containing ``anchor``."""
        # datetime.weekday() is Monday=0; roll back to the preceding Sunday
        week_start = (anchor - timedelta(days=(anchor.weekday() + 1) % 7)).date()
        result = []
        for code in byday:
            offset = WEEKDAY_OFFSETS.get(code)
            if offset is None:
                logger.debug("Skipping unrecognized BYDAY code %r", code)
                continue
            day = week_start + timedelta(days=offset)
            result.append(datetime.combine(day, series_start.time()))
        return sorted(result)

    def _advance(self, start: datetime, rule: LiteRecurrenceRule, step: int) -> datetime:
        """Anchor for iteration ``step``, computed from the series start."""
        if rule.freq == "DAILY":
            return start + timedelta(days=step * rule.interval)
        if rule.freq == "WEEKLY":
            return start + timedelta(days=7 * step * rule.interval)
        if rule.freq == "MONTHLY":
            return start + relativedelta(months=step * rule.interval)
        if rule.freq == "YEARLY":
            return start + relativedelta(years=step * rule.interval)
        return start

