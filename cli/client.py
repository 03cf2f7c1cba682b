from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import httpx
import typer

from cli.config import CLIConfig


def load_readings_file(path: Path) -> List[Dict[str, Any]]:
    """Read a JSON file holding either a list of readings or ``{"readings": [...]}``."""
    if not path.is_file():
        raise typer.BadParameter(f"Path {path} is not a file.")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"Could not read readings from {path}: {exc}") from exc

    if isinstance(payload, dict):
        payload = payload.get("readings")
    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        raise typer.BadParameter(f"File {path} does not contain a list of readings.")
    return payload


class ApiClient:
    """Minimal HTTP client for the dashboard service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def ingest_readings(self, readings: List[Dict[str, Any]]) -> Dict[str, Any]:
        try:
            response = self._client.post("/readings", json={"readings": readings})
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    def list_devices(self) -> List[Dict[str, Any]]:
        try:
            response = self._client.get("/devices")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    def get_dashboard(self, params: Dict[str, Any]) -> Dict[str, Any]:
        query = {key: value for key, value in params.items() if value is not None}
        try:
            response = self._client.get("/dashboard", params=query)
            if response.status_code == 404:
                raise typer.BadParameter(
                    f"Device {params.get('device_id')} has no readings."
                )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    def get_alerts(self, params: Dict[str, Any]) -> Dict[str, Any]:
        query = {key: value for key, value in params.items() if value is not None}
        try:
            response = self._client.get("/alerts", params=query)
            if response.status_code == 404:
                raise typer.BadParameter(
                    f"Device {params.get('device_id')} has no readings."
                )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
