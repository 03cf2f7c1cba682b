"""HTTP route definitions for the service."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas import (
    AlertOut,
    AlertsResponse,
    ChartPoint,
    DashboardResponse,
    DeviceOut,
    IngestResponse,
    ReadingOut,
    ReadingsIngestRequest,
    StatsOut,
    ViolationOut,
)
from datastore.readings_store import ReadingStore, build_default_store
from models.records import ThresholdConfig
from services.alerts import DEFAULT_SCAN_LIMIT, build_alert_config, detect_current_alerts
from services.engine import DashboardEngine, DashboardInputs, build_default_engine
from settings import get_settings

router = APIRouter()


def get_store() -> ReadingStore:
    return build_default_store()


def get_engine() -> DashboardEngine:
    return build_default_engine()


@router.post(
    "/readings",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=IngestResponse,
    summary="Add or replace probe readings in the current snapshot.",
)
def ingest_readings(
    request: ReadingsIngestRequest,
    store: ReadingStore = Depends(get_store),
) -> IngestResponse:
    if not request.readings:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No readings supplied.",
        )
    accepted = store.put_readings(item.model_dump() for item in request.readings)
    return IngestResponse(accepted=accepted, total=len(store))


@router.get(
    "/devices",
    response_model=List[DeviceOut],
    summary="List known devices with their latest reading metadata.",
)
def list_devices(store: ReadingStore = Depends(get_store)) -> List[DeviceOut]:
    return [DeviceOut.from_summary(summary) for summary in store.list_devices()]


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Compute chart, violations, stats and table pages for one device.",
)
def get_dashboard(
    device_id: str = Query("", description="Device to inspect; empty selects nothing."),
    date_from: Optional[date] = Query(None, description="Inclusive first day."),
    date_to: Optional[date] = Query(None, description="Inclusive last day."),
    corrosion_max: Optional[float] = Query(None),
    metal_loss_max: Optional[float] = Query(None),
    resistance_min: Optional[float] = Query(None),
    resistance_max: Optional[float] = Query(None),
    max_points: Optional[int] = Query(None, description="Chart budget, clamped to 10..1000."),
    table_page: int = Query(1, ge=1),
    outlier_page: int = Query(1, ge=1),
    store: ReadingStore = Depends(get_store),
    engine: DashboardEngine = Depends(get_engine),
) -> DashboardResponse:
    if device_id and not store.has_device(device_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Device {device_id!r} has no readings.",
        )

    thresholds = ThresholdConfig(
        corrosion_max=corrosion_max,
        metal_loss_max=metal_loss_max,
        resistance_min=resistance_min,
        resistance_max=resistance_max,
    )
    inputs = DashboardInputs(
        readings=store.snapshot(),
        device_id=device_id,
        date_from=date_from,
        date_to=date_to,
        thresholds=thresholds,
        max_points=max_points or get_settings().default_max_points,
        table_page=table_page,
        outlier_page=outlier_page,
    )
    view = engine.compute(inputs)

    return DashboardResponse(
        device_id=device_id,
        has_date_range=view.has_date_range,
        chart_series=[ChartPoint.from_point(point) for point in view.chart_series],
        stats=StatsOut.from_stats(view.stats) if view.stats else None,
        table_rows=[ReadingOut.from_reading(reading) for reading in view.table_rows],
        readings_remaining=view.readings_remaining,
        violation_rows=[
            ViolationOut.from_violation(violation) for violation in view.violation_rows
        ],
        violation_count=len(view.violations),
        violations_remaining=view.violations_remaining,
        thresholds={
            "corrosion_max": inputs.thresholds.corrosion_max,
            "metal_loss_max": inputs.thresholds.metal_loss_max,
            "resistance_min": inputs.thresholds.resistance_min,
            "resistance_max": inputs.thresholds.resistance_max,
        },
    )


@router.get(
    "/readings/{reading_id}",
    response_model=ReadingOut,
    summary="Fetch one stored reading by id.",
)
def get_reading(reading_id: str, store: ReadingStore = Depends(get_store)) -> ReadingOut:
    try:
        reading = store.get_reading(reading_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Reading {reading_id!r} not found.",
        ) from exc
    return ReadingOut.from_reading(reading)


@router.get(
    "/alerts",
    response_model=AlertsResponse,
    summary="Scan the newest readings for live alerts.",
)
def get_alerts(
    device_id: Optional[str] = Query(None, description="Restrict the scan to one device."),
    corrosion_rate_max: Optional[float] = Query(None),
    metal_loss_max: Optional[float] = Query(None),
    battery_low: Optional[float] = Query(None),
    probe_inactive_alert: bool = Query(True),
    limit: int = Query(DEFAULT_SCAN_LIMIT, ge=1, le=1000, description="Newest readings to scan."),
    store: ReadingStore = Depends(get_store),
) -> AlertsResponse:
    if device_id and not store.has_device(device_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Device {device_id!r} has no readings.",
        )

    config = build_alert_config(
        corrosion_rate_max=corrosion_rate_max,
        metal_loss_max=metal_loss_max,
        battery_low=battery_low,
        probe_inactive_alert=probe_inactive_alert,
    )
    alerts = detect_current_alerts(store.snapshot(), config, device_id=device_id, limit=limit)
    return AlertsResponse(
        scanned_limit=limit,
        alert_count=len(alerts),
        alerts=[AlertOut.from_alert(alert) for alert in alerts],
        config={
            "corrosion_rate_max": config.corrosion_rate_max,
            "metal_loss_max": config.metal_loss_max,
            "battery_low": config.battery_low,
            "probe_inactive_alert": config.probe_inactive_alert,
        },
    )


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
