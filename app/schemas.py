"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from models.records import (
    Alert,
    DeviceSummary,
    Reading,
    SampledPoint,
    Stats,
    Violation,
)

NumberLike = Union[float, int, str, None]


class ReadingIn(BaseModel):
    """One reading as posted by a data source; metric fields are loosely typed."""

    id: Optional[str] = None
    device_id: str
    device_name: Optional[str] = None
    timestamp: Union[datetime, str, float, None] = None
    corrosion_rate: NumberLike = None
    metal_loss: NumberLike = None
    probe_resistance: NumberLike = None
    battery_percentage: NumberLike = None
    probe_status: NumberLike = None


class ReadingsIngestRequest(BaseModel):
    readings: List[ReadingIn] = Field(default_factory=list)


class IngestResponse(BaseModel):
    accepted: int = Field(..., ge=0)
    total: int = Field(..., ge=0)


class DeviceOut(BaseModel):
    device_id: str
    name: str
    reading_count: int = Field(..., ge=0)
    last_timestamp: Optional[datetime] = None
    battery_percentage: Optional[float] = None
    probe_status: str = "Inactive"

    @classmethod
    def from_summary(cls, summary: DeviceSummary) -> "DeviceOut":
        return cls(
            device_id=summary.device_id,
            name=summary.name,
            reading_count=summary.reading_count,
            last_timestamp=summary.last_timestamp,
            battery_percentage=summary.battery_percentage,
            probe_status="Active" if summary.probe_active else "Inactive",
        )


class ReadingOut(BaseModel):
    id: str
    device_id: str
    timestamp: Optional[datetime] = None
    corrosion_rate: Any = None
    metal_loss: Any = None
    probe_resistance: Any = None
    battery_percentage: Any = None
    probe_status: Any = None

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingOut":
        return cls(
            id=reading.id,
            device_id=reading.device_id,
            timestamp=reading.timestamp,
            corrosion_rate=reading.corrosion_rate,
            metal_loss=reading.metal_loss,
            probe_resistance=reading.probe_resistance,
            battery_percentage=reading.battery_percentage,
            probe_status=reading.probe_status,
        )


class ViolationOut(BaseModel):
    reading: ReadingOut
    messages: List[str]

    @classmethod
    def from_violation(cls, violation: Violation) -> "ViolationOut":
        return cls(
            reading=ReadingOut.from_reading(violation.reading),
            messages=list(violation.messages),
        )


class ChartPoint(BaseModel):
    id: str
    timestamp: Optional[str] = None
    date_label: str
    corrosion: float
    metal_loss: float
    resistance: float
    is_corrosion_outlier: bool
    is_metal_loss_outlier: bool
    is_resistance_outlier: bool
    is_outlier: bool

    @classmethod
    def from_point(cls, point: SampledPoint) -> "ChartPoint":
        return cls(
            id=point.id,
            timestamp=point.timestamp_iso,
            date_label=point.date_label,
            corrosion=point.corrosion,
            metal_loss=point.metal_loss,
            resistance=point.resistance,
            is_corrosion_outlier=point.is_corrosion_outlier,
            is_metal_loss_outlier=point.is_metal_loss_outlier,
            is_resistance_outlier=point.is_resistance_outlier,
            is_outlier=point.is_outlier,
        )


class StatsOut(BaseModel):
    latest_corrosion: float
    latest_metal_loss: float
    latest_battery: float
    latest_timestamp: Optional[datetime] = None
    active_probe_count: int = Field(..., ge=0)
    total_reading_count: int = Field(..., ge=0)
    violation_count: int = Field(..., ge=0)

    @classmethod
    def from_stats(cls, stats: Stats) -> "StatsOut":
        return cls(
            latest_corrosion=stats.latest_corrosion,
            latest_metal_loss=stats.latest_metal_loss,
            latest_battery=stats.latest_battery,
            latest_timestamp=stats.latest_timestamp,
            active_probe_count=stats.active_probe_count,
            total_reading_count=stats.total_reading_count,
            violation_count=stats.violation_count,
        )


class DashboardResponse(BaseModel):
    """Everything a client needs to render one dashboard state."""

    device_id: str
    has_date_range: bool
    chart_series: List[ChartPoint] = Field(default_factory=list)
    stats: Optional[StatsOut] = None
    table_rows: List[ReadingOut] = Field(default_factory=list)
    readings_remaining: int = Field(0, ge=0)
    violation_rows: List[ViolationOut] = Field(default_factory=list)
    violation_count: int = Field(0, ge=0)
    violations_remaining: int = Field(0, ge=0)
    thresholds: Dict[str, Optional[float]] = Field(default_factory=dict)


class AlertOut(BaseModel):
    id: str
    severity: str
    device_id: str
    device: str
    message: str
    value: Any = None
    threshold: Optional[float] = None
    timestamp: Optional[datetime] = None
    reading_id: str

    @classmethod
    def from_alert(cls, alert: Alert) -> "AlertOut":
        return cls(
            id=alert.id,
            severity=alert.severity,
            device_id=alert.device_id,
            device=alert.device,
            message=alert.message,
            value=alert.value,
            threshold=alert.threshold,
            timestamp=alert.timestamp,
            reading_id=alert.reading_id,
        )


class AlertsResponse(BaseModel):
    """Live alerts over the newest readings and the bounds that produced them."""

    scanned_limit: int = Field(..., ge=1)
    alert_count: int = Field(0, ge=0)
    alerts: List[AlertOut] = Field(default_factory=list)
    config: Dict[str, Any] = Field(default_factory=dict)
