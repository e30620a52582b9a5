"""Parsing of loosely formatted date/time strings from query parameters."""

from __future__ import annotations

from datetime import datetime, timezone

import dateparser

from app.domain.errors import ValidationError

_SETTINGS = {
    "TIMEZONE": "UTC",
    "TO_TIMEZONE": "UTC",
    "RETURN_AS_TIMEZONE_AWARE": True,
    "DATE_ORDER": "YMD",
}


def parse_instant(raw: str, field: str = "date") -> datetime:
    """Parse *raw* with ``dateparser`` into an aware UTC datetime.

    Raises ``ValidationError`` naming *field* when nothing can be parsed.
    """
    result = dateparser.parse(raw, settings=_SETTINGS) if raw and raw.strip() else None
    if result is None:
        raise ValidationError(f"Invalid {field}: {raw!r}")
    return result.astimezone(timezone.utc)


def parse_day(raw: str) -> datetime:
    """Return UTC midnight at the start of the calendar day named by *raw*."""
    instant = parse_instant(raw, "date")
    return datetime(instant.year, instant.month, instant.day, tzinfo=timezone.utc)
