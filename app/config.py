"""Runtime settings, read from ``CALENDAR_*`` environment variables."""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, Field

_ENV_PREFIX = "CALENDAR_"


class Settings(BaseModel):
    log_level: str = "INFO"
    store_timeout_seconds: float = Field(default=5.0, gt=0)
    max_instances_per_master: int = Field(default=1000, gt=0)
    max_scan_per_master: int = Field(default=100_000, gt=0)
    check_all_day_conflicts: bool = False
    default_color: str = "#4285f4"
    seed_data: bool = False


_ENV_FIELDS = {
    "LOG_LEVEL": "log_level",
    "STORE_TIMEOUT_SECONDS": "store_timeout_seconds",
    "MAX_INSTANCES": "max_instances_per_master",
    "MAX_SCAN": "max_scan_per_master",
    "CHECK_ALL_DAY_CONFLICTS": "check_all_day_conflicts",
    "DEFAULT_COLOR": "default_color",
    "SEED_DATA": "seed_data",
}


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """Build Settings from *environ* (defaults to ``os.environ``).

    Values are handed to pydantic as strings, so ``"false"``/``"0"`` and
    numeric strings coerce the usual way and bad values raise.
    """
    env = os.environ if environ is None else environ
    values = {
        field: env[_ENV_PREFIX + key]
        for key, field in _ENV_FIELDS.items()
        if _ENV_PREFIX + key in env
    }
    return Settings(**values)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
