from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_READINGS_PATH_ENV = "DASHBOARD_READINGS_PATH"
_MAX_POINTS_ENV = "DASHBOARD_DEFAULT_MAX_POINTS"
_READINGS_PER_PAGE_ENV = "DASHBOARD_READINGS_PER_PAGE"
_VIOLATIONS_PER_PAGE_ENV = "DASHBOARD_VIOLATIONS_PER_PAGE"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    readings_path: Optional[str]
    default_max_points: int
    readings_per_page: int
    violations_per_page: int
    log_level: str


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        readings_path=_read_optional_env(_READINGS_PATH_ENV, "./tmp/readings.json"),
        default_max_points=_read_positive_int(_MAX_POINTS_ENV, 100),
        readings_per_page=_read_positive_int(_READINGS_PER_PAGE_ENV, 20),
        violations_per_page=_read_positive_int(_VIOLATIONS_PER_PAGE_ENV, 50),
        log_level=_read_log_level("INFO"),
    )
