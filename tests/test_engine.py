from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any

from models.records import Reading, ThresholdConfig
from services.engine import DashboardEngine, DashboardInputs, StageCache, build_default_engine
from settings import get_settings

_START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _series(count: int, device_id: str = "dev-1", **fields: Any) -> list[Reading]:
    values = {
        "corrosion_rate": "1.000",
        "metal_loss": "0.000500",
        "probe_resistance": 150.0,
        "battery_percentage": 80,
        "probe_status": 1,
    }
    values.update(fields)
    return [
        Reading(
            id=f"{device_id}-{index}",
            device_id=device_id,
            timestamp=_START + timedelta(minutes=5 * index),
            **values,
        )
        for index in range(count)
    ]


def _inputs(readings, **overrides: Any) -> DashboardInputs:
    params: dict[str, Any] = {
        "readings": readings,
        "device_id": "dev-1",
        "date_from": date(2024, 1, 1),
        "date_to": date(2024, 1, 31),
    }
    params.update(overrides)
    return DashboardInputs(**params)


def test_empty_device_yields_empty_view() -> None:
    engine = DashboardEngine()

    view = engine.compute(_inputs(_series(10), device_id=""))

    assert view.filtered.filtered == ()
    assert view.stats is None
    assert view.table_rows == ()
    assert view.chart_series == ()
    assert view.violations == ()


def test_missing_date_window_keeps_chart_and_violations_empty() -> None:
    engine = DashboardEngine()
    readings = _series(30, corrosion_rate="9")

    view = engine.compute(
        _inputs(readings, date_from=None, date_to=None, thresholds=ThresholdConfig(corrosion_max=5))
    )

    assert view.has_date_range is False
    assert view.chart_series == ()
    assert view.violations == ()
    assert len(view.filtered) == 30
    assert view.stats is not None
    assert view.stats.total_reading_count == 30
    assert view.stats.violation_count == 0
    assert len(view.table_rows) == 20


def test_one_sided_date_window_also_gates_chart() -> None:
    engine = DashboardEngine()

    view = engine.compute(_inputs(_series(30), date_to=None))

    assert view.chart_series == ()
    assert len(view.filtered) == 30


def test_single_reading_breaching_corrosion() -> None:
    engine = DashboardEngine()
    readings = [
        Reading(id="only", device_id="dev-1", timestamp=_START, corrosion_rate="6.5")
    ]

    view = engine.compute(_inputs(readings, thresholds=ThresholdConfig(corrosion_max=5)))

    assert len(view.violations) == 1
    assert view.violations[0].messages == ("Corrosion: 6.500 > 5",)
    assert view.violation_rows == view.violations
    assert view.stats is not None
    assert view.stats.violation_count == 1
    assert view.chart_series[0].is_corrosion_outlier is True


def test_undefined_resistance_flags_minimum_breach() -> None:
    engine = DashboardEngine()
    readings = [Reading(id="r", device_id="dev-1", timestamp=_START, probe_resistance=None)]

    view = engine.compute(_inputs(readings, thresholds=ThresholdConfig(resistance_min=10)))

    assert [v.messages for v in view.violations] == [("Resistance: 0.00 < 10",)]


def test_thousand_readings_chart_is_bounded_and_keeps_latest() -> None:
    engine = DashboardEngine()
    readings = _series(1000)

    view = engine.compute(_inputs(readings, max_points=100))

    assert len(view.chart_series) == 100
    assert view.chart_series[-1].id == readings[-1].id
    assert view.stats is not None
    assert view.stats.total_reading_count == 1000


def test_every_breaching_reading_is_listed_even_when_chart_is_sampled() -> None:
    engine = DashboardEngine()
    readings = [
        Reading(
            id=f"r-{index}",
            device_id="dev-1",
            timestamp=_START + timedelta(minutes=index),
            corrosion_rate=10 if index % 7 == 3 else 1,
        )
        for index in range(1000)
    ]

    view = engine.compute(_inputs(readings, thresholds=ThresholdConfig(corrosion_max=5), max_points=50))

    expected = {r.id for r in readings if float(r.corrosion_rate) > 5}
    assert {v.reading.id for v in view.violations} == expected
    assert len(view.chart_series) <= 50
    assert sum(point.is_outlier for point in view.chart_series) < len(expected)


def test_identical_inputs_give_identical_views() -> None:
    readings = _series(400, corrosion_rate="7")
    inputs = _inputs(readings, thresholds=ThresholdConfig(corrosion_max=5), max_points=37, table_page=2)

    first = DashboardEngine().compute(inputs)
    second = DashboardEngine().compute(inputs)
    again = DashboardEngine().compute(_inputs(list(readings), thresholds=ThresholdConfig(corrosion_max=5), max_points=37, table_page=2))

    assert first == second == again


def test_table_rows_are_newest_first_and_paged_by_twenty() -> None:
    engine = DashboardEngine()
    readings = _series(45)

    page_one = engine.compute(_inputs(readings))
    page_three = engine.compute(_inputs(readings, table_page=3))

    assert [r.id for r in page_one.table_rows] == [f"dev-1-{i}" for i in range(44, 24, -1)]
    assert page_one.readings_remaining == 25
    assert page_three.table_rows[:20] == page_one.table_rows
    assert len(page_three.table_rows) == 45
    assert page_three.readings_remaining == 0


def test_violation_rows_are_paged_by_fifty() -> None:
    engine = DashboardEngine()
    readings = _series(120, corrosion_rate="8")
    thresholds = ThresholdConfig(corrosion_max=5)

    first = engine.compute(_inputs(readings, thresholds=thresholds))
    third = engine.compute(_inputs(readings, thresholds=thresholds, outlier_page=3))

    assert len(first.violations) == 120
    assert len(first.violation_rows) == 50
    assert first.violations_remaining == 70
    assert third.violation_rows[:50] == first.violation_rows
    assert third.violations_remaining == 0


def test_changing_only_outlier_page_reuses_upstream_stages() -> None:
    engine = DashboardEngine()
    readings = tuple(_series(300, corrosion_rate="8"))
    thresholds = ThresholdConfig(corrosion_max=5)

    engine.compute(_inputs(readings, thresholds=thresholds))
    engine.compute(_inputs(readings, thresholds=thresholds, outlier_page=2))

    assert engine._filter_cache.misses == 1
    assert engine._violation_cache.misses == 1
    assert engine._chart_cache.misses == 1
    assert engine._stats_cache.misses == 1
    assert engine._table_cache.misses == 1
    assert engine._violation_page_cache.misses == 2


def test_changing_thresholds_keeps_filter_stage() -> None:
    engine = DashboardEngine()
    readings = tuple(_series(50))

    engine.compute(_inputs(readings, thresholds=ThresholdConfig(corrosion_max=5)))
    engine.compute(_inputs(readings, thresholds=ThresholdConfig(corrosion_max=0.5)))

    assert engine._filter_cache.misses == 1
    assert engine._violation_cache.misses == 2
    assert engine._chart_cache.misses == 2


def test_inputs_snapshot_is_isolated_from_later_changes() -> None:
    engine = DashboardEngine()
    readings = _series(5)
    inputs = _inputs(readings)

    before = engine.compute(inputs)
    readings.append(Reading(id="late", device_id="dev-1", timestamp=_START))
    after = engine.compute(inputs)

    assert before == after
    assert len(after.filtered) == 5


def test_dates_may_be_given_as_iso_strings() -> None:
    engine = DashboardEngine()

    view = engine.compute(_inputs(_series(10), date_from="2024-01-01", date_to="2024-01-01"))

    assert view.has_date_range is True
    assert len(view.chart_series) == 10


def test_reset_clears_stage_caches() -> None:
    engine = DashboardEngine()
    inputs = _inputs(tuple(_series(5)))

    engine.compute(inputs)
    engine.reset()
    engine.compute(inputs)

    assert engine._filter_cache.misses == 2


def test_stage_cache_holds_only_latest_key() -> None:
    cache: StageCache[int] = StageCache("demo")
    calls: list[int] = []

    def compute(value: int) -> int:
        calls.append(value)
        return value * 2

    assert cache.get_or_compute((1,), lambda: compute(1)) == 2
    assert cache.get_or_compute((1,), lambda: compute(1)) == 2
    assert cache.get_or_compute((2,), lambda: compute(2)) == 4
    assert cache.get_or_compute((1,), lambda: compute(1)) == 2

    assert calls == [1, 2, 1]
    assert cache.hits == 1
    assert cache.misses == 3


def test_default_engine_uses_configured_page_sizes(monkeypatch) -> None:
    monkeypatch.setenv("DASHBOARD_READINGS_PER_PAGE", "5")
    monkeypatch.setenv("DASHBOARD_VIOLATIONS_PER_PAGE", "7")
    get_settings.cache_clear()
    build_default_engine.cache_clear()

    try:
        engine = build_default_engine()
        assert engine.readings_per_page == 5
        assert engine.violations_per_page == 7
    finally:
        build_default_engine.cache_clear()
        get_settings.cache_clear()


def test_non_finite_thresholds_count_as_unset() -> None:
    engine = DashboardEngine()
    readings = _series(3, probe_resistance=150)
    thresholds = ThresholdConfig(
        corrosion_max=float("nan"),
        resistance_min=float("inf"),
        resistance_max=float("-inf"),
    )

    inputs = _inputs(readings, thresholds=thresholds)
    view = engine.compute(inputs)

    assert inputs.thresholds == ThresholdConfig()
    assert view.violations == ()
    assert not any(point.is_outlier for point in view.chart_series)


def test_non_finite_bound_does_not_disable_finite_ones() -> None:
    engine = DashboardEngine()
    readings = _series(2, corrosion_rate="9")

    view = engine.compute(
        _inputs(readings, thresholds=ThresholdConfig(corrosion_max=5, resistance_min=float("inf")))
    )

    assert [v.messages for v in view.violations] == [("Corrosion: 9.000 > 5",)] * 2
