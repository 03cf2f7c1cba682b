"""Current-state summaries for filtered readings and devices."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from models.records import DeviceSummary, Reading, Stats
from services.coercion import to_instant_safe, to_number_safe

_UNDATED = datetime.min.replace(tzinfo=timezone.utc)


class StatsSummarizer:
    """Pure summary component that can be unit tested in isolation."""

    def summarize(
        self, descending: Sequence[Reading], violation_count: int
    ) -> Optional[Stats]:
        """Describe the newest reading plus counts over the whole selection.

        ``descending`` must be newest first. Returns ``None`` for an empty
        selection.
        """
        if not descending:
            return None

        latest = descending[0]
        active = sum(1 for reading in descending if _is_active(reading.probe_status))
        return Stats(
            latest_corrosion=to_number_safe(latest.corrosion_rate),
            latest_metal_loss=to_number_safe(latest.metal_loss),
            latest_battery=to_number_safe(latest.battery_percentage),
            latest_timestamp=to_instant_safe(latest.timestamp),
            active_probe_count=active,
            total_reading_count=len(descending),
            violation_count=violation_count,
        )

    def summarize_devices(self, readings: Iterable[Reading]) -> List[DeviceSummary]:
        newest: Dict[str, Reading] = {}
        counts: Dict[str, int] = {}

        for reading in readings:
            if not reading.device_id:
                continue
            counts[reading.device_id] = counts.get(reading.device_id, 0) + 1
            current = newest.get(reading.device_id)
            if current is None or _instant(reading) > _instant(current):
                newest[reading.device_id] = reading

        summaries = []
        for device_id in sorted(newest):
            reading = newest[device_id]
            summaries.append(
                DeviceSummary(
                    device_id=device_id,
                    name=reading.device_name or device_id,
                    reading_count=counts[device_id],
                    last_timestamp=to_instant_safe(reading.timestamp),
                    battery_percentage=(
                        None
                        if reading.battery_percentage is None
                        else to_number_safe(reading.battery_percentage)
                    ),
                    probe_active=_is_active(reading.probe_status),
                )
            )
        return summaries


def _instant(reading: Reading) -> datetime:
    return to_instant_safe(reading.timestamp) or _UNDATED


def _is_active(status: object) -> bool:
    # Status arrives as 1/0 or "1"/"0"; booleans are not statuses.
    return to_number_safe(status) == 1 and not isinstance(status, bool)
