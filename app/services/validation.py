"""Explicit input validation used by the event service.

Each function returns the cleaned value or raises ``ValidationError``.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

from app.domain.errors import ValidationError

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
LOCATION_MAX_LENGTH = 200

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_COLOR_RE = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def clean_title(title: str | None, *, required: bool = True) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        if required:
            raise ValidationError("Event title is required")
        raise ValidationError("Event title cannot be empty")
    if len(cleaned) > TITLE_MAX_LENGTH:
        raise ValidationError(
            f"Title cannot be more than {TITLE_MAX_LENGTH} characters"
        )
    return cleaned


def clean_text(value: str | None, field: str, max_length: int) -> str:
    cleaned = (value or "").strip()
    if len(cleaned) > max_length:
        raise ValidationError(
            f"{field.capitalize()} cannot be more than {max_length} characters"
        )
    return cleaned


def validate_span(start: datetime | None, end: datetime | None) -> tuple[datetime, datetime]:
    if start is None or end is None:
        raise ValidationError("Event start and end times are required")
    start, end = as_utc(start), as_utc(end)
    if start >= end:
        raise ValidationError("Event end time must be after start time")
    return start, end


def validate_color(color: str) -> str:
    if not _COLOR_RE.match(color):
        raise ValidationError("Color must be a valid hex color code")
    return color


def clean_attendees(attendees: list[str]) -> list[str]:
    cleaned = []
    for raw in attendees:
        email = raw.strip().lower()
        if not _EMAIL_RE.match(email):
            raise ValidationError(
                f"Please provide a valid email address for attendee: {raw!r}"
            )
        cleaned.append(email)
    return cleaned
