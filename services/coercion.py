"""Total conversions from loosely typed reading fields to usable values.

Nothing in this module raises on bad input: numbers degrade to ``0.0``,
instants and thresholds degrade to ``None``.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timezone
from typing import Any, Optional


def to_number_safe(value: Any) -> float:
    """Return the finite numeric value of ``value`` or ``0.0``."""
    if value is None:
        return 0.0
    if isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            return 0.0
        # float() tolerates digit separators, readings never carry them
        if "_" in candidate:
            return 0.0
        value = candidate
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def to_instant_safe(value: Any) -> Optional[datetime]:
    """Normalize ``value`` to an aware UTC ``datetime`` or return ``None``.

    Accepts datetimes (naive ones are taken as UTC), plain dates (midnight
    UTC), ISO-8601 strings with an optional ``Z`` suffix and numeric epoch
    milliseconds.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, (int, float)):
        try:
            if not math.isfinite(value):
                return None
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            return None
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        # offset pushes the instant outside the representable years
        return None


def to_date_safe(value: Any) -> Optional[date]:
    """Calendar-date variant of :func:`to_instant_safe` for filter bounds."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            return None
        try:
            return date.fromisoformat(candidate[:10])
        except ValueError:
            return None
    return None


def to_number_or_none(value: Any) -> Optional[float]:
    """Like :func:`to_number_safe` but reports missing or bad input as ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        if "_" in value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def to_threshold(value: Any) -> Optional[float]:
    """Parse a user supplied bound; blank, unparseable or infinite means unbounded."""
    return to_number_or_none(value)


def format_fixed(value: Any, digits: int) -> str:
    return f"{to_number_safe(value):.{digits}f}"


def format_bound(value: float) -> str:
    """Shortest plain rendering of a bound: ``5.0`` renders as ``5``."""
    if float(value).is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(float(value))
