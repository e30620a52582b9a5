"""Tests for environment-driven settings."""

import pydantic
import pytest

from app.config import Settings, load_settings


def test_defaults_without_environment():
    assert load_settings({}) == Settings()


def test_reads_prefixed_variables():
    settings = load_settings(
        {
            "CALENDAR_STORE_TIMEOUT_SECONDS": "0.5",
            "CALENDAR_MAX_INSTANCES": "25",
            "CALENDAR_MAX_SCAN": "5000",
            "CALENDAR_CHECK_ALL_DAY_CONFLICTS": "true",
            "CALENDAR_SEED_DATA": "0",
            "UNRELATED": "ignored",
        }
    )
    assert settings.store_timeout_seconds == 0.5
    assert settings.max_instances_per_master == 25
    assert settings.max_scan_per_master == 5000
    assert settings.check_all_day_conflicts is True
    assert settings.seed_data is False


def test_rejects_invalid_values():
    with pytest.raises(pydantic.ValidationError):
        load_settings({"CALENDAR_MAX_INSTANCES": "0"})


def test_rejects_non_positive_scan_limit():
    with pytest.raises(pydantic.ValidationError):
        load_settings({"CALENDAR_MAX_SCAN": "0"})
