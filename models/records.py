"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True, slots=True)
class Reading:
    """A single probe reading as delivered by the data source.

    Metric fields are kept exactly as received ("number-like"); they are
    coerced only when a service reads them.
    """

    id: str
    device_id: str
    timestamp: Optional[datetime]
    corrosion_rate: Any = None
    metal_loss: Any = None
    probe_resistance: Any = None
    battery_percentage: Any = None
    probe_status: Any = None
    device_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "device_id": self.device_id,
            "device_name": self.device_name,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "corrosion_rate": self.corrosion_rate,
            "metal_loss": self.metal_loss,
            "probe_resistance": self.probe_resistance,
            "battery_percentage": self.battery_percentage,
            "probe_status": self.probe_status,
        }


@dataclass(frozen=True, slots=True)
class ThresholdConfig:
    """Optional per-metric bounds. ``None`` means the metric is unbounded."""

    corrosion_max: Optional[float] = None
    metal_loss_max: Optional[float] = None
    resistance_min: Optional[float] = None
    resistance_max: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return (
            self.corrosion_max is None
            and self.metal_loss_max is None
            and self.resistance_min is None
            and self.resistance_max is None
        )


@dataclass(frozen=True, slots=True)
class Violation:
    """A reading that breached at least one bound, one message per breach."""

    reading: Reading
    messages: Tuple[str, ...]


@dataclass(frozen=True, slots=True)
class SampledPoint:
    """Chart-ready projection of a reading."""

    id: str
    timestamp_iso: Optional[str]
    date_label: str
    device_id: str
    corrosion: float
    metal_loss: float
    resistance: float
    is_corrosion_outlier: bool = False
    is_metal_loss_outlier: bool = False
    is_resistance_outlier: bool = False

    @property
    def is_outlier(self) -> bool:
        return (
            self.is_corrosion_outlier
            or self.is_metal_loss_outlier
            or self.is_resistance_outlier
        )


@dataclass(frozen=True, slots=True)
class Stats:
    """Current-state summary of a filtered reading set."""

    latest_corrosion: float
    latest_metal_loss: float
    latest_battery: float
    latest_timestamp: Optional[datetime]
    active_probe_count: int
    total_reading_count: int
    violation_count: int


@dataclass(frozen=True, slots=True)
class FilteredReadings:
    """Device/date selection plus its two chronological orderings."""

    filtered: Tuple[Reading, ...] = ()
    ascending: Tuple[Reading, ...] = ()
    descending: Tuple[Reading, ...] = ()

    def __len__(self) -> int:
        return len(self.filtered)


@dataclass(slots=True)
class DeviceSummary:
    """Per-device rollup used to populate device pickers."""

    device_id: str
    name: str
    reading_count: int = 0
    last_timestamp: Optional[datetime] = None
    battery_percentage: Optional[float] = None
    probe_active: bool = False


@dataclass(frozen=True, slots=True)
class AlertConfig:
    """Bounds for the live alert scan, independent of dashboard thresholds."""

    corrosion_rate_max: float = 10.0
    metal_loss_max: float = 0.38820213079452515
    battery_low: float = 80.0
    probe_inactive_alert: bool = True


@dataclass(frozen=True, slots=True)
class Alert:
    """One condition raised by the live alert scan."""

    id: str
    severity: str
    device_id: str
    device: str
    message: str
    value: Any
    threshold: Optional[float]
    timestamp: Optional[datetime]
    reading_id: str
