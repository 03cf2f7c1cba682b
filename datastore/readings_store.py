from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
from uuid import uuid4

from models.records import DeviceSummary, Reading
from services.coercion import to_instant_safe
from services.summarizer import StatsSummarizer
from settings import get_settings

logger = logging.getLogger(__name__)

# Canonical field name first, then the telemetry feed's prefixed spelling.
_FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "timestamp": ("timestamp", "data_timestamp"),
    "corrosion_rate": ("corrosion_rate", "data_corrosion_rate"),
    "metal_loss": ("metal_loss", "data_metal_loss"),
    "probe_resistance": ("probe_resistance", "data_probe_resistance"),
    "battery_percentage": ("battery_percentage", "data_battery_percentage"),
    "probe_status": ("probe_status", "data_probe_status"),
}


def _first_present(raw: Mapping[str, Any], names: Tuple[str, ...]) -> Any:
    for name in names:
        if name in raw:
            return raw[name]
    return None


def reading_from_mapping(raw: Mapping[str, Any]) -> Reading:
    """Build a :class:`Reading` from a loosely shaped record.

    Only the timestamp is normalized here; metric values are stored as
    received. A missing id is replaced with a generated one.
    """
    reading_id = raw.get("id")
    if reading_id is None or str(reading_id).strip() == "":
        reading_id = str(uuid4())
        logger.warning(
            "Reading without id, generated one",
            extra={"reading_id": reading_id, "device_id": raw.get("device_id")},
        )
    device_id = raw.get("device_id")
    device_name = raw.get("device_name")
    return Reading(
        id=str(reading_id),
        device_id="" if device_id is None else str(device_id),
        device_name=None if device_name is None else str(device_name),
        timestamp=to_instant_safe(_first_present(raw, _FIELD_ALIASES["timestamp"])),
        corrosion_rate=_first_present(raw, _FIELD_ALIASES["corrosion_rate"]),
        metal_loss=_first_present(raw, _FIELD_ALIASES["metal_loss"]),
        probe_resistance=_first_present(raw, _FIELD_ALIASES["probe_resistance"]),
        battery_percentage=_first_present(raw, _FIELD_ALIASES["battery_percentage"]),
        probe_status=_first_present(raw, _FIELD_ALIASES["probe_status"]),
    )


class ReadingStore:
    """In-memory reading collection that hands out immutable snapshots."""

    def __init__(
        self,
        persistence_path: Optional[Path] = None,
        summarizer: Optional[StatsSummarizer] = None,
    ) -> None:
        self._readings: Dict[str, Reading] = {}
        self._snapshot: Optional[Tuple[Reading, ...]] = None
        self.persistence_path = persistence_path
        self.summarizer = summarizer or StatsSummarizer()
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def put_readings(
        self, records: Iterable[Union[Reading, Mapping[str, Any]]]
    ) -> int:
        """Insert or replace readings by id; returns how many were written."""
        incoming = [
            record if isinstance(record, Reading) else reading_from_mapping(record)
            for record in records
        ]
        with self._lock:
            for reading in incoming:
                self._readings[reading.id] = reading
            self._snapshot = None
            self._persist()
            total = len(self._readings)
        logger.info(
            "Stored readings, %d held in total",
            total,
            extra={"reading_count": len(incoming)},
        )
        return len(incoming)

    def get_reading(self, reading_id: str) -> Reading:
        with self._lock:
            reading = self._readings.get(reading_id)
        if reading is None:
            raise KeyError(f"Reading {reading_id!r} not found.")
        return reading

    def snapshot(self) -> Tuple[Reading, ...]:
        """Return the current collection; the same tuple until the next write."""
        with self._lock:
            if self._snapshot is None:
                self._snapshot = tuple(self._readings.values())
            return self._snapshot

    def list_devices(self) -> List[DeviceSummary]:
        return self.summarizer.summarize_devices(self.snapshot())

    def has_device(self, device_id: str) -> bool:
        return any(reading.device_id == device_id for reading in self.snapshot())

    def clear(self) -> None:
        with self._lock:
            self._readings.clear()
            self._snapshot = None
            self._persist()

    def __len__(self) -> int:
        with self._lock:
            return len(self._readings)

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = [reading.to_dict() for reading in self._readings.values()]
        self.persistence_path.write_text(json.dumps(payload, indent=2, default=str))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "[]"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            data = []

        if not isinstance(data, list):
            data = []
        for payload in data:
            if isinstance(payload, Mapping):
                reading = reading_from_mapping(payload)
                self._readings[reading.id] = reading


@lru_cache
def build_default_store(path: Optional[str] = None) -> ReadingStore:
    settings = get_settings()
    store_path = settings.readings_path if path is None else path
    persistence = Path(store_path) if store_path else None
    return ReadingStore(persistence_path=persistence)
