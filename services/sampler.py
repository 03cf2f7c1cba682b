"""Deterministic decimation of a chronological series for charting."""

from __future__ import annotations

from typing import Any, List, Sequence, Tuple

from models.records import Reading, SampledPoint, ThresholdConfig
from services.coercion import to_instant_safe, to_number_safe
from services.violations import Breaches, breaches, outlier_indices

MIN_POINTS = 10
MAX_POINTS = 1000
DEFAULT_MAX_POINTS = 100


def clamp_max_points(value: Any) -> int:
    """Bring a requested point budget into ``[MIN_POINTS, MAX_POINTS]``.

    Zero, blank and unparseable requests fall back to the default budget.
    """
    requested = int(to_number_safe(value)) or DEFAULT_MAX_POINTS
    return max(MIN_POINTS, min(MAX_POINTS, requested))


def sample_indices(length: int, max_points: int) -> List[int]:
    """Pick at most ``max_points`` positions out of ``range(length)``.

    Short series are kept whole. Longer ones are strided from index 0 with
    stride ``length // max_points``, widened to the ceiling when the floor
    would overflow the budget. The last position is always kept: appended
    when there is room, otherwise it takes the final stride pick's slot.
    """
    if length <= max_points:
        return list(range(length))

    stride = length // max_points
    if -(-length // stride) > max_points:
        stride = -(-length // max_points)

    picks = list(range(0, length, stride))
    last = length - 1
    if picks[-1] != last:
        if len(picks) < max_points:
            picks.append(last)
        else:
            picks[-1] = last
    return picks


def _date_label(reading: Reading) -> Tuple[str | None, str]:
    instant = to_instant_safe(reading.timestamp)
    if instant is None:
        return None, "—"
    iso = instant.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return iso, f"{instant:%b} {instant.day}, {instant:%I:%M %p}"


def project_point(
    reading: Reading, index: int, flags: Breaches = Breaches()
) -> SampledPoint:
    timestamp_iso, label = _date_label(reading)
    return SampledPoint(
        id=reading.id or str(index),
        timestamp_iso=timestamp_iso,
        date_label=label,
        device_id=reading.device_id,
        corrosion=to_number_safe(reading.corrosion_rate),
        metal_loss=to_number_safe(reading.metal_loss),
        resistance=to_number_safe(reading.probe_resistance),
        is_corrosion_outlier=flags.corrosion,
        is_metal_loss_outlier=flags.metal_loss,
        is_resistance_outlier=flags.resistance,
    )


def sample_series(
    ascending: Sequence[Reading],
    max_points: Any,
    thresholds: ThresholdConfig,
) -> Tuple[SampledPoint, ...]:
    """Decimate ``ascending`` and tag each surviving point with its breaches.

    Outlier flags come from the full series, so a flagged point is shown as
    such whenever the stride lands on it. Points the stride skips are not
    re-inserted; the complete violation list is the authoritative record.
    """
    budget = clamp_max_points(max_points)
    flagged = outlier_indices(ascending, thresholds)

    points = []
    for index in sample_indices(len(ascending), budget):
        reading = ascending[index]
        flags = breaches(reading, thresholds) if index in flagged else Breaches()
        points.append(project_point(reading, index, flags))
    return tuple(points)
