from __future__ import annotations

from typing import Iterable

from datastore.readings_store import build_default_store
from services.engine import build_default_engine
from settings import get_settings


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    readings_path = tmp_path / "readings.json"

    monkeypatch.setenv("DASHBOARD_READINGS_PATH", str(readings_path))
    monkeypatch.setenv("DASHBOARD_DEFAULT_MAX_POINTS", "250")
    monkeypatch.setenv("DASHBOARD_READINGS_PER_PAGE", "10")
    monkeypatch.setenv("DASHBOARD_VIOLATIONS_PER_PAGE", "25")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    caches = (get_settings, build_default_store, build_default_engine)
    _clear_caches(caches)

    try:
        settings = get_settings()
        store = build_default_store()
        engine = build_default_engine()

        assert settings.default_max_points == 250
        assert settings.log_level == "DEBUG"
        assert store.persistence_path == readings_path
        assert engine.readings_per_page == 10
        assert engine.violations_per_page == 25
    finally:
        _clear_caches(caches)


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("DASHBOARD_DEFAULT_MAX_POINTS", "lots")
    monkeypatch.setenv("DASHBOARD_READINGS_PER_PAGE", "-3")
    monkeypatch.setenv("DASHBOARD_VIOLATIONS_PER_PAGE", "  ")
    monkeypatch.setenv("LOG_LEVEL", "")
    get_settings.cache_clear()

    try:
        settings = get_settings()

        assert settings.default_max_points == 100
        assert settings.readings_per_page == 20
        assert settings.violations_per_page == 50
        assert settings.log_level == "INFO"
    finally:
        get_settings.cache_clear()


def test_blank_readings_path_disables_persistence(monkeypatch) -> None:
    monkeypatch.setenv("DASHBOARD_READINGS_PATH", "")
    _clear_caches((get_settings, build_default_store))

    try:
        assert get_settings().readings_path is None
        assert build_default_store().persistence_path is None
    finally:
        _clear_caches((get_settings, build_default_store))
