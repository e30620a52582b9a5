"""Tests for the explicit input validators."""

from datetime import datetime, timedelta, timezone

import pytest

from app.domain.errors import ValidationError
from app.services.validation import (
    as_utc,
    clean_attendees,
    clean_text,
    clean_title,
    validate_color,
    validate_span,
)

START = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)


def test_clean_title_trims():
    assert clean_title("  Standup  ") == "Standup"


@pytest.mark.parametrize("title", [None, "", "   "])
def test_clean_title_rejects_blank(title):
    with pytest.raises(ValidationError, match="title is required"):
        clean_title(title)


def test_clean_title_rejects_too_long():
    with pytest.raises(ValidationError, match="100 characters"):
        clean_title("x" * 101)


def test_clean_text_defaults_to_empty():
    assert clean_text(None, "description", 500) == ""


def test_clean_text_enforces_limit():
    with pytest.raises(ValidationError, match="Location cannot be more than 200"):
        clean_text("y" * 201, "location", 200)


def test_validate_span_requires_both_ends():
    with pytest.raises(ValidationError, match="required"):
        validate_span(START, None)


@pytest.mark.parametrize("delta", [timedelta(0), timedelta(minutes=-5)])
def test_validate_span_requires_start_before_end(delta):
    with pytest.raises(ValidationError, match="end time must be after start"):
        validate_span(START, START + delta)


def test_validate_span_treats_naive_as_utc():
    start, end = validate_span(datetime(2026, 3, 2, 10), datetime(2026, 3, 2, 11))
    assert start == START
    assert end.tzinfo is not None


def test_as_utc_converts_offsets():
    plus_two = timezone(timedelta(hours=2))
    assert as_utc(datetime(2026, 3, 2, 12, 0, tzinfo=plus_two)) == START


@pytest.mark.parametrize("color", ["#fff", "#4285F4", "#a1b2c3"])
def test_validate_color_accepts_hex(color):
    assert validate_color(color) == color


@pytest.mark.parametrize("color", ["red", "#ffff", "4285f4", "#ggg"])
def test_validate_color_rejects_non_hex(color):
    with pytest.raises(ValidationError):
        validate_color(color)


def test_clean_attendees_normalises_case():
    assert clean_attendees([" Bob@Example.com "]) == ["bob@example.com"]


def test_clean_attendees_rejects_bad_email():
    with pytest.raises(ValidationError, match="valid email"):
        clean_attendees(["bob@example"])
