from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from cli.client import ApiClient, load_readings_file
from cli.config import CLIConfig, load_config
from cli.render import render_alerts, render_dashboard, render_devices


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the probe dashboard service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Dashboard API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("ingest")
def ingest_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to a JSON readings file."),
) -> None:
    """Send readings from a JSON file to the service."""
    state = _get_state(ctx)
    readings = load_readings_file(file)
    typer.echo(f"Sending {len(readings)} readings to {state.config.base_url} ...")
    payload = state.client.ingest_readings(readings)
    typer.secho(
        f"Accepted {payload.get('accepted')} readings, {payload.get('total')} stored.",
        fg=typer.colors.GREEN,
    )


@app.command("devices")
def devices_command(ctx: typer.Context) -> None:
    """List devices known to the service."""
    state = _get_state(ctx)
    render_devices(state.client.list_devices())


@app.command("dashboard")
def dashboard_command(
    ctx: typer.Context,
    device_id: str = typer.Argument(..., help="Device identifier to inspect."),
    date_from: Optional[str] = typer.Option(None, "--from", help="First day (YYYY-MM-DD), inclusive."),
    date_to: Optional[str] = typer.Option(None, "--to", help="Last day (YYYY-MM-DD), inclusive."),
    corrosion_max: Optional[float] = typer.Option(None, "--corrosion-max", help="Upper corrosion bound (mpy)."),
    metal_loss_max: Optional[float] = typer.Option(None, "--metal-loss-max", help="Upper metal loss bound (mils)."),
    resistance_min: Optional[float] = typer.Option(None, "--resistance-min", help="Lower probe resistance bound."),
    resistance_max: Optional[float] = typer.Option(None, "--resistance-max", help="Upper probe resistance bound."),
    max_points: Optional[int] = typer.Option(None, "--max-points", help="Chart point budget (10-1000)."),
    table_page: int = typer.Option(1, "--table-page", min=1, help="How many pages of readings to list."),
    outlier_page: int = typer.Option(1, "--outlier-page", min=1, help="How many pages of violations to list."),
) -> None:
    """Show stats, violations and readings for one device."""
    state = _get_state(ctx)
    payload = state.client.get_dashboard(
        {
            "device_id": device_id,
            "date_from": date_from,
            "date_to": date_to,
            "corrosion_max": corrosion_max,
            "metal_loss_max": metal_loss_max,
            "resistance_min": resistance_min,
            "resistance_max": resistance_max,
            "max_points": max_points,
            "table_page": table_page,
            "outlier_page": outlier_page,
        }
    )
    render_dashboard(payload)


@app.command("alerts")
def alerts_command(
    ctx: typer.Context,
    device_id: Optional[str] = typer.Option(None, "--device", help="Restrict the scan to one device."),
    corrosion_rate_max: Optional[float] = typer.Option(None, "--corrosion-max", help="Corrosion rate alert bound (mpy)."),
    metal_loss_max: Optional[float] = typer.Option(None, "--metal-loss-max", help="Metal loss alert bound (mils)."),
    battery_low: Optional[float] = typer.Option(None, "--battery-low", help="Battery percentage below which to alert."),
    probe_inactive_alert: bool = typer.Option(True, "--probe-alerts/--no-probe-alerts", help="Alert on inactive probes."),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, max=1000, help="Newest readings to scan."),
) -> None:
    """Show live alerts raised by the newest readings."""
    state = _get_state(ctx)
    payload = state.client.get_alerts(
        {
            "device_id": device_id,
            "corrosion_rate_max": corrosion_rate_max,
            "metal_loss_max": metal_loss_max,
            "battery_low": battery_low,
            "probe_inactive_alert": probe_inactive_alert,
            "limit": limit,
        }
    )
    render_alerts(payload)
