"""Recomputation pipeline behind the probe dashboard."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from functools import lru_cache
from threading import Lock
from typing import Any, Callable, Generic, Optional, Sequence, Tuple, TypeVar

from models.records import (
    FilteredReadings,
    Reading,
    SampledPoint,
    Stats,
    ThresholdConfig,
    Violation,
)
from services.coercion import to_date_safe
from services.filtering import filter_readings
from services.pagination import normalize_page, page_window, remaining
from services.sampler import DEFAULT_MAX_POINTS, clamp_max_points, sample_series
from services.summarizer import StatsSummarizer
from services.violations import detect_violations, normalize_thresholds
from settings import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


class StageCache(Generic[T]):
    """Single-entry memo: holds the value for the most recent key only."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._key: Any = _MISSING
        self._value: Optional[T] = None
        self.hits = 0
        self.misses = 0

    def get_or_compute(self, key: Tuple[Any, ...], compute: Callable[[], T]) -> T:
        if self._key is not _MISSING and self._key == key:
            self.hits += 1
            return self._value  # type: ignore[return-value]

        value = compute()
        self._key = key
        self._value = value
        self.misses += 1
        logger.debug("Recomputed dashboard stage", extra={"stage": self.name})
        return value

    def clear(self) -> None:
        self._key = _MISSING
        self._value = None


@dataclass(frozen=True)
class DashboardInputs:
    """Everything one recomputation depends on.

    ``readings`` is frozen into a tuple on construction, so later changes
    to the caller's collection never leak into a computed view. Bounds that
    are not finite numbers are dropped from ``thresholds``.
    """

    readings: Sequence[Reading] = ()
    device_id: Optional[str] = None
    date_from: Any = None
    date_to: Any = None
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    max_points: Any = DEFAULT_MAX_POINTS
    table_page: Any = 1
    outlier_page: Any = 1

    def __post_init__(self) -> None:
        if not isinstance(self.readings, tuple):
            object.__setattr__(self, "readings", tuple(self.readings))
        object.__setattr__(self, "thresholds", normalize_thresholds(self.thresholds))


@dataclass(frozen=True)
class DashboardView:
    filtered: FilteredReadings
    chart_series: Tuple[SampledPoint, ...]
    violations: Tuple[Violation, ...]
    stats: Optional[Stats]
    table_rows: Tuple[Reading, ...]
    violation_rows: Tuple[Violation, ...]
    has_date_range: bool

    @property
    def readings_remaining(self) -> int:
        return remaining(self.filtered.descending, self.table_rows)

    @property
    def violations_remaining(self) -> int:
        return remaining(self.violations, self.violation_rows)


class DashboardEngine:
    """Derives chart, violation, stats and table views from a snapshot.

    Every stage is memoized on its own inputs, so changing only a page
    number re-slices without refiltering, and changing thresholds does not
    touch the device/date selection.
    """

    def __init__(
        self,
        readings_per_page: int = 20,
        violations_per_page: int = 50,
        summarizer: Optional[StatsSummarizer] = None,
    ) -> None:
        self.readings_per_page = readings_per_page
        self.violations_per_page = violations_per_page
        self.summarizer = summarizer or StatsSummarizer()
        self._lock = Lock()
        self._filter_cache: StageCache[FilteredReadings] = StageCache("filter")
        self._violation_cache: StageCache[Tuple[Violation, ...]] = StageCache("violations")
        self._chart_cache: StageCache[Tuple[SampledPoint, ...]] = StageCache("chart")
        self._stats_cache: StageCache[Optional[Stats]] = StageCache("stats")
        self._table_cache: StageCache[Tuple[Reading, ...]] = StageCache("table")
        self._violation_page_cache: StageCache[Tuple[Violation, ...]] = StageCache(
            "violation_rows"
        )

    @property
    def caches(self) -> Tuple[StageCache[Any], ...]:
        return (
            self._filter_cache,
            self._violation_cache,
            self._chart_cache,
            self._stats_cache,
            self._table_cache,
            self._violation_page_cache,
        )

    def compute(self, inputs: DashboardInputs) -> DashboardView:
        with self._lock:
            return self._compute(inputs)

    def reset(self) -> None:
        with self._lock:
            for cache in self.caches:
                cache.clear()

    def _compute(self, inputs: DashboardInputs) -> DashboardView:
        readings = inputs.readings
        device_id = inputs.device_id or ""
        date_from: Optional[date] = to_date_safe(inputs.date_from)
        date_to: Optional[date] = to_date_safe(inputs.date_to)
        thresholds = inputs.thresholds
        budget = clamp_max_points(inputs.max_points)
        table_page = normalize_page(inputs.table_page)
        outlier_page = normalize_page(inputs.outlier_page)
        # Chart and violations stay empty until both bounds are chosen.
        has_date_range = date_from is not None and date_to is not None

        filtered = self._filter_cache.get_or_compute(
            (readings, device_id, date_from, date_to),
            lambda: filter_readings(readings, device_id, date_from, date_to),
        )

        violations = self._violation_cache.get_or_compute(
            (filtered, thresholds, has_date_range),
            lambda: detect_violations(filtered.filtered, thresholds)
            if has_date_range
            else (),
        )

        chart_series = self._chart_cache.get_or_compute(
            (filtered, thresholds, budget, has_date_range),
            lambda: sample_series(filtered.ascending, budget, thresholds)
            if has_date_range
            else (),
        )

        stats = self._stats_cache.get_or_compute(
            (filtered, len(violations)),
            lambda: self.summarizer.summarize(filtered.descending, len(violations)),
        )

        table_rows = self._table_cache.get_or_compute(
            (filtered, table_page, self.readings_per_page),
            lambda: page_window(filtered.descending, table_page, self.readings_per_page),
        )

        violation_rows = self._violation_page_cache.get_or_compute(
            (violations, outlier_page, self.violations_per_page),
            lambda: page_window(violations, outlier_page, self.violations_per_page),
        )

        logger.debug(
            "Dashboard view ready",
            extra={
                "device_id": device_id or None,
                "reading_count": len(filtered),
                "violation_count": len(violations),
                "point_count": len(chart_series),
            },
        )
        return DashboardView(
            filtered=filtered,
            chart_series=chart_series,
            violations=violations,
            stats=stats,
            table_rows=table_rows,
            violation_rows=violation_rows,
            has_date_range=has_date_range,
        )


@lru_cache
def build_default_engine() -> DashboardEngine:
    """Factory that wires the engine with configured page sizes."""
    settings = get_settings()
    return DashboardEngine(
        readings_per_page=settings.readings_per_page,
        violations_per_page=settings.violations_per_page,
    )
