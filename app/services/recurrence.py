"""Service for compiling structured recurrence options into RRULE strings and
expanding recurring masters into virtual occurrences within a time window."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from functools import lru_cache

from dateutil.rrule import rrulestr

from app.domain.errors import InvalidRecurrenceSpec, RecurrenceParseError
from app.domain.models import Event, EventInstance, Frequency, RecurrenceOptions
from app.services.validation import as_utc

logger = logging.getLogger(__name__)

DEFAULT_MAX_INSTANCES = 1000
DEFAULT_MAX_SCAN = 100_000

_DAY_CODES = ["MO", "TU", "WE", "TH", "FR", "SA", "SU"]

_DAY_NAMES = {
    "monday": "MO",
    "tuesday": "TU",
    "wednesday": "WE",
    "thursday": "TH",
    "friday": "FR",
    "saturday": "SA",
    "sunday": "SU",
}

# Optional ordinal prefix, e.g. "1MO" (first Monday) or "-1FR" (last Friday).
_BYDAY_RE = re.compile(r"^([+-]?\d{1,2})?(MO|TU|WE|TH|FR|SA|SU)$")

_FREQ_RE = re.compile(r"(?:^|[;:\s])FREQ=([A-Z]+)")

# Fields copied from a master onto each of its occurrences.
_INSTANCE_EXCLUDE = {
    "id",
    "kind",
    "is_recurring_instance",
    "start",
    "end",
    "recurrence_id",
    "duration",
}


def compile_rrule(options: RecurrenceOptions) -> str:
    """Compile structured recurrence options into a canonical RRULE string.

    The result has no ``RRULE:`` prefix and no DTSTART; the master event's
    start anchors it at expansion time. ``COUNT`` and ``UNTIL`` are both
    encoded when both are given. Raises ``InvalidRecurrenceSpec`` when the
    options cannot form a valid rule.
    """
    parts = [f"FREQ={_frequency(options.frequency)}"]

    interval = options.interval or 1
    if interval < 1:
        raise InvalidRecurrenceSpec("Recurrence interval must be a positive integer")
    parts.append(f"INTERVAL={interval}")

    if options.count:
        if options.count < 1:
            raise InvalidRecurrenceSpec("Recurrence count must be a positive integer")
        parts.append(f"COUNT={options.count}")

    if options.until:
        parts.append(f"UNTIL={as_utc(options.until).strftime('%Y%m%dT%H%M%SZ')}")

    if options.byweekday:
        parts.append("BYDAY=" + ",".join(_day_code(d) for d in options.byweekday))

    if options.bymonthday:
        for day in options.bymonthday:
            if day == 0 or not -31 <= day <= 31:
                raise InvalidRecurrenceSpec(f"Invalid month day: {day}")
        parts.append("BYMONTHDAY=" + ",".join(str(d) for d in options.bymonthday))

    rule = ";".join(parts)
    try:
        parse_rrule(rule, datetime.now(timezone.utc))
    except RecurrenceParseError as exc:
        raise InvalidRecurrenceSpec(exc.message) from exc
    return rule


def parse_rrule(rule: str, dtstart: datetime):
    """Parse *rule* anchored at *dtstart*; raises ``RecurrenceParseError``.

    Only DAILY, WEEKLY, MONTHLY and YEARLY rules are accepted.
    """
    match = _FREQ_RE.search(rule.upper())
    if match is None or match.group(1) not in Frequency.__members__:
        raise RecurrenceParseError(
            f"Invalid recurrence rule {rule!r}: FREQ must be one of "
            + ", ".join(Frequency.__members__)
        )
    try:
        return rrulestr(rule.strip(), dtstart=dtstart)
    except (ValueError, TypeError, KeyError) as exc:
        raise RecurrenceParseError(f"Invalid recurrence rule {rule!r}: {exc}") from exc


def expand_recurrence(
    master: Event,
    range_start: datetime,
    range_end: datetime,
    max_instances: int = DEFAULT_MAX_INSTANCES,
    max_scan: int = DEFAULT_MAX_SCAN,
) -> list[EventInstance]:
    """Materialise the occurrences of *master* that start within the window.

    Both window boundaries are inclusive. Each instance keeps the master's
    duration and gets the id ``"{master.id}_{epoch_millis}"``, so repeated
    calls yield identical results. A rule that fails to parse, or that needs
    more than *max_scan* occurrences to reach the window end, is logged and
    yields no instances.
    """
    if not master.recurring_rule:
        return []

    try:
        occurrences = _occurrences(
            master.recurring_rule,
            master.start,
            as_utc(range_start),
            as_utc(range_end),
            max_instances,
            max_scan,
        )
    except RecurrenceParseError as exc:
        logger.warning("Skipping expansion of event %s: %s", master.id, exc.message)
        return []

    duration = master.end - master.start
    shared = master.model_dump(exclude=_INSTANCE_EXCLUDE)
    return [
        EventInstance(
            **shared,
            id=f"{master.id}_{_epoch_millis(start)}",
            start=start,
            end=start + duration,
            recurrence_id=master.start,
            original_event_id=master.id,
        )
        for start in occurrences
    ]


@lru_cache(maxsize=512)
def _occurrences(
    rule: str,
    dtstart: datetime,
    range_start: datetime,
    range_end: datetime,
    limit: int,
    max_scan: int,
) -> tuple[datetime, ...]:
    parsed = parse_rrule(rule, dtstart)
    found: list[datetime] = []
    try:
        for scanned, dt in enumerate(parsed, start=1):
            if scanned > max_scan:
                raise RecurrenceParseError(
                    f"Rule {rule!r} needs more than {max_scan} occurrences to reach {range_end}"
                )
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            if dt > range_end:
                break
            if dt >= range_start:
                found.append(dt)
                if len(found) >= limit:
                    break
    except (ValueError, TypeError) as exc:
        raise RecurrenceParseError(f"Cannot expand rule {rule!r}: {exc}") from exc
    return tuple(found)


def _frequency(raw: str | None) -> str:
    if not raw:
        raise InvalidRecurrenceSpec("Recurrence frequency is required")
    try:
        return Frequency(raw.strip().upper()).value
    except ValueError:
        raise InvalidRecurrenceSpec(f"Invalid recurrence frequency: {raw!r}") from None


def _day_code(day: int | str) -> str:
    if isinstance(day, int):
        if not 0 <= day <= 6:
            raise InvalidRecurrenceSpec(f"Invalid weekday: {day}")
        return _DAY_CODES[day]

    value = day.strip()
    if value.lower() in _DAY_NAMES:
        return _DAY_NAMES[value.lower()]
    if value.isdigit():
        return _day_code(int(value))
    if not _BYDAY_RE.match(value.upper()):
        raise InvalidRecurrenceSpec(f"Invalid weekday: {day!r}")
    return value.upper()


def _epoch_millis(dt: datetime) -> int:
    return int(dt.timestamp()) * 1000 + dt.microsecond // 1000
