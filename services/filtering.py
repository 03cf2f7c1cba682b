"""Device and date-window selection over a reading snapshot."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Iterable, Optional

from models.records import FilteredReadings, Reading
from services.coercion import to_instant_safe

_UNDATED = datetime.min.replace(tzinfo=timezone.utc)


def day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def day_end(day: date) -> datetime:
    """Last representable millisecond of ``day`` (23:59:59.999)."""
    return datetime.combine(day, time(23, 59, 59, 999000), tzinfo=timezone.utc)


def _chronological_key(reading: Reading) -> datetime:
    # Undated readings sort ahead of everything dated.
    return to_instant_safe(reading.timestamp) or _UNDATED


def filter_readings(
    readings: Iterable[Reading],
    device_id: Optional[str],
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> FilteredReadings:
    """Select one device's readings inside an inclusive calendar window.

    An empty ``device_id`` selects nothing. Readings without a timestamp
    are dropped as soon as either bound is given. The input is never
    mutated; ``filtered`` keeps input order, ``ascending`` is oldest
    first and ``descending`` is its exact reverse.
    """
    if not device_id:
        return FilteredReadings()

    lower = day_start(date_from) if date_from is not None else None
    upper = day_end(date_to) if date_to is not None else None

    selected = []
    for reading in readings:
        if reading.device_id != device_id:
            continue
        if lower is not None or upper is not None:
            instant = to_instant_safe(reading.timestamp)
            if instant is None:
                continue
            if lower is not None and instant < lower:
                continue
            if upper is not None and instant > upper:
                continue
        selected.append(reading)

    ascending = tuple(sorted(selected, key=_chronological_key))
    return FilteredReadings(
        filtered=tuple(selected),
        ascending=ascending,
        descending=ascending[::-1],
    )
