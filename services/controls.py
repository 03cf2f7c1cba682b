"""Caller-side dashboard state and its page-reset rules."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Optional, Sequence

from models.records import Reading, ThresholdConfig
from services.engine import DashboardInputs
from services.sampler import DEFAULT_MAX_POINTS, clamp_max_points


@dataclass(frozen=True)
class DashboardControls:
    """Immutable snapshot of what the user has selected.

    Changing the device or the date window sends both tables back to their
    first page; changing thresholds does the same for the violations table.
    """

    device_id: str = ""
    date_from: Any = None
    date_to: Any = None
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    max_points: int = DEFAULT_MAX_POINTS
    table_page: int = 1
    outlier_page: int = 1

    def select_device(self, device_id: Optional[str]) -> "DashboardControls":
        device_id = device_id or ""
        if device_id == self.device_id:
            return self
        return replace(self, device_id=device_id, table_page=1, outlier_page=1)

    def set_date_range(self, date_from: Any, date_to: Any) -> "DashboardControls":
        if (date_from, date_to) == (self.date_from, self.date_to):
            return self
        return replace(
            self, date_from=date_from, date_to=date_to, table_page=1, outlier_page=1
        )

    def set_thresholds(self, thresholds: ThresholdConfig) -> "DashboardControls":
        if thresholds == self.thresholds:
            return self
        return replace(self, thresholds=thresholds, outlier_page=1)

    def set_max_points(self, max_points: Any) -> "DashboardControls":
        return replace(self, max_points=clamp_max_points(max_points))

    def load_more_readings(self) -> "DashboardControls":
        return replace(self, table_page=self.table_page + 1)

    def load_more_violations(self) -> "DashboardControls":
        return replace(self, outlier_page=self.outlier_page + 1)

    def reset_controls(self) -> "DashboardControls":
        """Clear every threshold and restore the default chart budget."""
        return replace(
            self.set_thresholds(ThresholdConfig()), max_points=DEFAULT_MAX_POINTS
        )

    def to_inputs(self, readings: Sequence[Reading]) -> DashboardInputs:
        return DashboardInputs(
            readings=readings,
            device_id=self.device_id,
            date_from=self.date_from,
            date_to=self.date_to,
            thresholds=self.thresholds,
            max_points=self.max_points,
            table_page=self.table_page,
            outlier_page=self.outlier_page,
        )
