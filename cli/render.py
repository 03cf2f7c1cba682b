from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _fixed(value: Any, digits: int) -> str:
    try:
        return f"{float(value):.{digits}f}"
    except (TypeError, ValueError):
        return "—"


def _or_dash(value: Any) -> Any:
    return "—" if value is None else value


def render_devices(devices: List[Dict[str, Any]]) -> None:
    echo_heading("Devices")
    if not devices:
        typer.echo("No devices reported yet.")
        return
    for device in devices:
        typer.echo(
            f"  - {device.get('device_id')} ({device.get('name')}): "
            f"{device.get('reading_count')} readings, "
            f"last {device.get('last_timestamp') or '—'}, "
            f"battery {_or_dash(device.get('battery_percentage'))}, "
            f"probe {device.get('probe_status') or '—'}"
        )


def render_dashboard(payload: Dict[str, Any]) -> None:
    echo_heading(f"Dashboard for {payload.get('device_id') or '(no device)'}")

    stats = payload.get("stats")
    typer.echo()
    echo_heading("Latest Reading")
    if stats:
        echo_key_values(
            [
                ("corrosion_rate", f"{_fixed(stats.get('latest_corrosion'), 3)} mpy"),
                ("metal_loss", f"{_fixed(stats.get('latest_metal_loss'), 6)} mils"),
                ("battery", f"{stats.get('latest_battery')}%"),
                ("timestamp", stats.get("latest_timestamp")),
                ("active_probes", stats.get("active_probe_count")),
                ("total_readings", stats.get("total_reading_count")),
                ("violations", stats.get("violation_count")),
            ]
        )
    else:
        typer.echo("No readings match the current selection.")

    chart = payload.get("chart_series") or []
    typer.echo()
    echo_heading("Chart")
    if not payload.get("has_date_range"):
        typer.echo("Pick both a start and an end date to chart readings.")
    else:
        flagged = sum(1 for point in chart if point.get("is_outlier"))
        echo_key_values([("points", len(chart)), ("flagged_points", flagged)])

    violations = payload.get("violation_rows") or []
    typer.echo()
    echo_heading(f"Violations ({payload.get('violation_count', 0)})")
    if violations:
        for violation in violations:
            reading = violation.get("reading") or {}
            typer.echo(
                f"  - {reading.get('timestamp')}: {'; '.join(violation.get('messages') or [])}"
            )
        if payload.get("violations_remaining"):
            typer.echo(f"  ... {payload['violations_remaining']} remaining")
    else:
        typer.echo("No threshold violations.")

    rows = payload.get("table_rows") or []
    typer.echo()
    echo_heading("Readings")
    if rows:
        for row in rows:
            typer.echo(
                f"  - {row.get('timestamp')}: corrosion {_fixed(row.get('corrosion_rate'), 3)}, "
                f"metal loss {_fixed(row.get('metal_loss'), 6)}, "
                f"resistance {_fixed(row.get('probe_resistance'), 2)}"
            )
        if payload.get("readings_remaining"):
            typer.echo(f"  ... {payload['readings_remaining']} remaining")
    else:
        typer.echo("No readings to list.")


def render_alerts(payload: Dict[str, Any]) -> None:
    alerts = payload.get("alerts") or []
    echo_heading(f"Current Alerts ({payload.get('alert_count', len(alerts))})")
    if not alerts:
        typer.echo("No active alerts.")
        return
    colors = {"critical": typer.colors.RED, "warning": typer.colors.YELLOW}
    for alert in alerts:
        typer.secho(
            f"  [{alert.get('severity')}] {alert.get('device')}: {alert.get('message')} "
            f"({alert.get('timestamp') or '—'})",
            fg=colors.get(alert.get("severity")),
        )
