"""Threshold breach detection for probe readings."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import FrozenSet, Iterable, NamedTuple, Sequence, Tuple

from models.records import Reading, ThresholdConfig, Violation
from services.coercion import (
    format_bound,
    format_fixed,
    to_instant_safe,
    to_number_safe,
    to_threshold,
)

_UNDATED = datetime.min.replace(tzinfo=timezone.utc)


class Breaches(NamedTuple):
    corrosion: bool = False
    metal_loss: bool = False
    resistance: bool = False

    @property
    def any_breach(self) -> bool:
        return self.corrosion or self.metal_loss or self.resistance


def normalize_thresholds(thresholds: ThresholdConfig | None) -> ThresholdConfig:
    """Drop bounds that cannot bound anything (infinite, NaN or unparseable)."""
    if thresholds is None:
        return ThresholdConfig()
    return ThresholdConfig(
        corrosion_max=to_threshold(thresholds.corrosion_max),
        metal_loss_max=to_threshold(thresholds.metal_loss_max),
        resistance_min=to_threshold(thresholds.resistance_min),
        resistance_max=to_threshold(thresholds.resistance_max),
    )


def breaches(reading: Reading, thresholds: ThresholdConfig) -> Breaches:
    """Evaluate each metric of ``reading`` against its configured bound."""
    corrosion = to_number_safe(reading.corrosion_rate)
    metal_loss = to_number_safe(reading.metal_loss)
    resistance = to_number_safe(reading.probe_resistance)
    return Breaches(
        corrosion=thresholds.corrosion_max is not None
        and corrosion > thresholds.corrosion_max,
        metal_loss=thresholds.metal_loss_max is not None
        and metal_loss > thresholds.metal_loss_max,
        resistance=(
            thresholds.resistance_min is not None
            and resistance < thresholds.resistance_min
        )
        or (
            thresholds.resistance_max is not None
            and resistance > thresholds.resistance_max
        ),
    )


def violation_messages(reading: Reading, thresholds: ThresholdConfig) -> Tuple[str, ...]:
    corrosion = to_number_safe(reading.corrosion_rate)
    metal_loss = to_number_safe(reading.metal_loss)
    resistance = to_number_safe(reading.probe_resistance)

    messages = []
    if thresholds.corrosion_max is not None and corrosion > thresholds.corrosion_max:
        messages.append(
            f"Corrosion: {format_fixed(corrosion, 3)} > {format_bound(thresholds.corrosion_max)}"
        )
    if thresholds.metal_loss_max is not None and metal_loss > thresholds.metal_loss_max:
        messages.append(
            f"Metal Loss: {format_fixed(metal_loss, 6)} > {format_bound(thresholds.metal_loss_max)}"
        )
    if thresholds.resistance_min is not None and resistance < thresholds.resistance_min:
        messages.append(
            f"Resistance: {format_fixed(resistance, 2)} < {format_bound(thresholds.resistance_min)}"
        )
    if thresholds.resistance_max is not None and resistance > thresholds.resistance_max:
        messages.append(
            f"Resistance: {format_fixed(resistance, 2)} > {format_bound(thresholds.resistance_max)}"
        )
    return tuple(messages)


def detect_violations(
    readings: Iterable[Reading], thresholds: ThresholdConfig
) -> Tuple[Violation, ...]:
    """Return every breaching reading, newest first.

    Readings sharing a timestamp keep their relative input order.
    """
    if thresholds.is_empty:
        return ()

    found = []
    for reading in readings:
        messages = violation_messages(reading, thresholds)
        if messages:
            found.append(Violation(reading=reading, messages=messages))

    found.sort(
        key=lambda violation: to_instant_safe(violation.reading.timestamp) or _UNDATED,
        reverse=True,
    )
    return tuple(found)


def outlier_indices(
    ascending: Sequence[Reading], thresholds: ThresholdConfig
) -> FrozenSet[int]:
    """Positions in ``ascending`` whose reading breaches any bound."""
    if thresholds.is_empty:
        return frozenset()
    return frozenset(
        index
        for index, reading in enumerate(ascending)
        if breaches(reading, thresholds).any_breach
    )
