"""Live alert scan over the newest readings.

Alerts are recomputed from the current snapshot on every call and never
stored. Each reading can raise up to four alerts: high corrosion rate
(critical), excessive metal loss (warning), low battery (info) and an
inactive probe (warning).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Tuple

from models.records import Alert, AlertConfig, Reading
from services.coercion import format_bound, to_instant_safe, to_number_or_none, to_threshold

logger = logging.getLogger(__name__)

SEVERITY_CRITICAL = "critical"
SEVERITY_WARNING = "warning"
SEVERITY_INFO = "info"

DEFAULT_SCAN_LIMIT = 100

_UNDATED = datetime.min.replace(tzinfo=timezone.utc)


def build_alert_config(
    corrosion_rate_max: Any = None,
    metal_loss_max: Any = None,
    battery_low: Any = None,
    probe_inactive_alert: bool = True,
) -> AlertConfig:
    """Build an :class:`AlertConfig`; missing or non-finite bounds keep their defaults."""
    defaults = AlertConfig()
    corrosion = to_threshold(corrosion_rate_max)
    metal_loss = to_threshold(metal_loss_max)
    battery = to_threshold(battery_low)
    return AlertConfig(
        corrosion_rate_max=defaults.corrosion_rate_max if corrosion is None else corrosion,
        metal_loss_max=defaults.metal_loss_max if metal_loss is None else metal_loss,
        battery_low=defaults.battery_low if battery is None else battery,
        probe_inactive_alert=bool(probe_inactive_alert),
    )


def _newest_first(readings: Iterable[Reading]) -> List[Reading]:
    return sorted(
        readings,
        key=lambda reading: to_instant_safe(reading.timestamp) or _UNDATED,
        reverse=True,
    )


def _alert(
    reading: Reading,
    kind: str,
    severity: str,
    message: str,
    value: Any,
    threshold: Optional[float],
) -> Alert:
    instant = to_instant_safe(reading.timestamp)
    suffix = str(int(instant.timestamp() * 1000)) if instant else reading.id
    return Alert(
        id=f"{reading.device_id}_{kind}_{suffix}",
        severity=severity,
        device_id=reading.device_id,
        device=reading.device_name or reading.device_id,
        message=message,
        value=value,
        threshold=threshold,
        timestamp=instant,
        reading_id=reading.id,
    )


def alerts_for_reading(reading: Reading, config: AlertConfig) -> List[Alert]:
    """Alerts raised by a single reading; unreadable metrics raise nothing."""
    raised: List[Alert] = []

    corrosion = to_number_or_none(reading.corrosion_rate)
    if corrosion is not None and corrosion > config.corrosion_rate_max:
        raised.append(
            _alert(
                reading,
                "corrosion",
                SEVERITY_CRITICAL,
                f"High corrosion rate detected: {format_bound(corrosion)}",
                corrosion,
                config.corrosion_rate_max,
            )
        )

    metal_loss = to_number_or_none(reading.metal_loss)
    if metal_loss is not None and metal_loss > config.metal_loss_max:
        raised.append(
            _alert(
                reading,
                "metalloss",
                SEVERITY_WARNING,
                f"Excessive metal loss: {format_bound(metal_loss)}",
                metal_loss,
                config.metal_loss_max,
            )
        )

    battery = to_number_or_none(reading.battery_percentage)
    if battery is not None and battery < config.battery_low:
        raised.append(
            _alert(
                reading,
                "battery",
                SEVERITY_INFO,
                f"Low battery: {format_bound(battery)}%",
                battery,
                config.battery_low,
            )
        )

    if config.probe_inactive_alert and _is_inactive(reading.probe_status):
        raised.append(
            _alert(reading, "probe_inactive", SEVERITY_WARNING, "Probe inactive", "Inactive", None)
        )

    return raised


def detect_current_alerts(
    readings: Iterable[Reading],
    config: Optional[AlertConfig] = None,
    *,
    device_id: Optional[str] = None,
    limit: int = DEFAULT_SCAN_LIMIT,
) -> Tuple[Alert, ...]:
    """Scan the ``limit`` newest readings (optionally of one device).

    Alerts come out in reading order, newest reading first, and in the
    fixed per-reading order corrosion, metal loss, battery, probe.
    """
    config = config or AlertConfig()
    candidates = [
        reading
        for reading in readings
        if not device_id or reading.device_id == device_id
    ]
    scanned = _newest_first(candidates)[: max(0, limit)]

    detected: List[Alert] = []
    for reading in scanned:
        detected.extend(alerts_for_reading(reading, config))

    logger.debug(
        "Scanned readings for alerts",
        extra={"reading_count": len(scanned), "violation_count": len(detected)},
    )
    return tuple(detected)


def _is_inactive(status: object) -> bool:
    if isinstance(status, bool):
        return False
    return to_number_or_none(status) == 0
