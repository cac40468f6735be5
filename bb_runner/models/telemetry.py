"""Telemetry sample model produced by power state readers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
NO_ESTIMATE = "(no estimate)"
LOG_COLUMNS = ("timestamp", "battery_percent", "power_state", "time_remaining")


class PowerState(str, Enum):
    """Power states reported by the host (other tokens pass through as text)."""

    CHARGING = "charging"
    DISCHARGING = "discharging"
    CHARGED = "charged"
    SHUTDOWN = "shutdown"


@dataclass(frozen=True)
class TelemetrySample:
    """One timestamped battery reading."""

    timestamp: datetime
    percent: int
    state: str
    time_remaining: Optional[str] = None

    @classmethod
    def shutdown(cls, timestamp: datetime) -> "TelemetrySample":
        """Synthetic terminal record written when power status disappears."""
        return cls(
            timestamp=timestamp.replace(microsecond=0),
            percent=0,
            state=PowerState.SHUTDOWN.value,
            time_remaining=None,
        )

    @property
    def is_shutdown(self) -> bool:
        return self.state == PowerState.SHUTDOWN.value

    @property
    def remaining_minutes(self) -> Optional[int]:
        """Return the remaining estimate in minutes, or None without one."""
        if not self.time_remaining or self.time_remaining == NO_ESTIMATE:
            return None
        hours, sep, minutes = self.time_remaining.partition(":")
        if not sep:
            return None
        try:
            return int(hours) * 60 + int(minutes)
        except ValueError:
            return None

    def to_row(self) -> list[str]:
        return [
            self.timestamp.strftime(TIMESTAMP_FORMAT),
            str(self.percent),
            self.state,
            self.time_remaining or "",
        ]
