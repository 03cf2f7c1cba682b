"""Cumulative "load more" windows over ordered collections."""

from __future__ import annotations

from typing import Any, Sequence, Tuple, TypeVar

from services.coercion import to_number_safe

T = TypeVar("T")


def normalize_page(value: Any) -> int:
    """Page numbers are 1-based; anything below 1 or unparseable is page 1."""
    return max(1, int(to_number_safe(value)))


def page_window(items: Sequence[T], page: Any, page_size: int) -> Tuple[T, ...]:
    """Return the first ``page * page_size`` items.

    Raising ``page`` only ever extends the prefix, previously visible rows
    keep their positions.
    """
    size = max(1, int(page_size))
    return tuple(items[: normalize_page(page) * size])


def remaining(items: Sequence[Any], window: Sequence[Any]) -> int:
    return max(0, len(items) - len(window))
