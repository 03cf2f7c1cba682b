from __future__ import annotations

from datetime import date, datetime, timezone

from models.records import Reading, ThresholdConfig
from services.controls import DashboardControls
from services.engine import DashboardEngine


def _paged() -> DashboardControls:
    return DashboardControls(device_id="dev-1", table_page=4, outlier_page=3)


def test_selecting_another_device_resets_both_pages() -> None:
    controls = _paged().select_device("dev-2")

    assert controls.device_id == "dev-2"
    assert (controls.table_page, controls.outlier_page) == (1, 1)


def test_reselecting_same_device_keeps_pages() -> None:
    original = _paged()

    assert original.select_device("dev-1") is original


def test_changing_date_range_resets_both_pages() -> None:
    controls = _paged().set_date_range(date(2024, 1, 1), date(2024, 1, 31))

    assert controls.date_from == date(2024, 1, 1)
    assert (controls.table_page, controls.outlier_page) == (1, 1)


def test_changing_thresholds_resets_only_violation_page() -> None:
    controls = _paged().set_thresholds(ThresholdConfig(corrosion_max=5))

    assert controls.thresholds.corrosion_max == 5
    assert (controls.table_page, controls.outlier_page) == (4, 1)


def test_load_more_grows_pages() -> None:
    controls = DashboardControls(device_id="dev-1").load_more_readings().load_more_readings()
    controls = controls.load_more_violations()

    assert (controls.table_page, controls.outlier_page) == (3, 2)


def test_reset_controls_clears_thresholds_and_chart_budget() -> None:
    controls = (
        DashboardControls(device_id="dev-1")
        .set_thresholds(ThresholdConfig(corrosion_max=5, resistance_min=1))
        .set_max_points(400)
        .load_more_violations()
    )

    reset = controls.reset_controls()

    assert reset.thresholds == ThresholdConfig()
    assert reset.max_points == 100
    assert reset.outlier_page == 1
    assert reset.device_id == "dev-1"


def test_set_max_points_clamps() -> None:
    assert DashboardControls().set_max_points(3).max_points == 10
    assert DashboardControls().set_max_points(9999).max_points == 1000


def test_controls_drive_the_engine() -> None:
    readings = [
        Reading(
            id=f"r-{index}",
            device_id="dev-1",
            timestamp=datetime(2024, 1, 2, index, tzinfo=timezone.utc),
            corrosion_rate=index,
        )
        for index in range(24)
    ]
    controls = (
        DashboardControls()
        .select_device("dev-1")
        .set_date_range("2024-01-01", "2024-01-03")
        .set_thresholds(ThresholdConfig(corrosion_max=20))
        .load_more_readings()
    )

    view = DashboardEngine().compute(controls.to_inputs(readings))

    assert len(view.table_rows) == 24
    assert [v.reading.id for v in view.violations] == ["r-23", "r-22", "r-21"]
