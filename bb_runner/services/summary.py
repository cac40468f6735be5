"""Run summary derived from a closed telemetry log."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from bb_runner.models.telemetry import TIMESTAMP_FORMAT
from bb_runner.services.system_info_types import SystemInfo


logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No data collected."


@dataclass(frozen=True)
class RunSummary:
    """Read-only view over the first and last data rows of a log."""

    start_time: datetime
    end_time: datetime
    start_percent: int
    end_percent: int
    duration_seconds: float
    drain_percent: Optional[int] = None
    drain_rate_per_hour: Optional[float] = None
    estimated_full_life_hours: Optional[float] = None

    @property
    def duration_minutes(self) -> int:
        return int(self.duration_seconds // 60)

    @property
    def duration_hours(self) -> float:
        return self.duration_seconds / 3600

    @property
    def has_drain_stats(self) -> bool:
        return self.drain_percent is not None

    @classmethod
    def from_endpoints(
        cls,
        start_time: datetime,
        start_percent: int,
        end_time: datetime,
        end_percent: int,
    ) -> "RunSummary":
        duration = (end_time - start_time).total_seconds()
        drain = start_percent - end_percent
        if duration <= 0 or drain <= 0:
            return cls(start_time, end_time, start_percent, end_percent, duration)
        rate = drain / (duration / 3600)
        return cls(
            start_time,
            end_time,
            start_percent,
            end_percent,
            duration,
            drain_percent=drain,
            drain_rate_per_hour=rate,
            estimated_full_life_hours=100 / rate,
        )


def load_log_frame(path: Path) -> pd.DataFrame:
    """Load the data rows of a telemetry log, skipping ``#`` lines."""
    try:
        frame = pd.read_csv(
            path,
            comment="#",
            dtype={"power_state": str, "time_remaining": str},
            keep_default_na=False,
        )
    except (pd.errors.EmptyDataError, FileNotFoundError):
        return pd.DataFrame(columns=["timestamp", "battery_percent", "power_state", "time_remaining"])
    if frame.empty:
        return frame
    frame["timestamp"] = pd.to_datetime(frame["timestamp"], format=TIMESTAMP_FORMAT, errors="coerce")
    frame["battery_percent"] = pd.to_numeric(frame["battery_percent"], errors="coerce")
    return frame.dropna(subset=["timestamp", "battery_percent"])


def summarize_log(path: Path) -> Optional[RunSummary]:
    """Compute the run summary, or None when the log holds no data rows."""
    frame = load_log_frame(path)
    if frame.empty:
        logger.info("Telemetry log %s has no data rows", path)
        return None
    first = frame.iloc[0]
    last = frame.iloc[-1]
    return RunSummary.from_endpoints(
        first["timestamp"].to_pydatetime(),
        int(first["battery_percent"]),
        last["timestamp"].to_pydatetime(),
        int(last["battery_percent"]),
    )


def format_summary_lines(
    summary: Optional[RunSummary],
    *,
    system: SystemInfo,
    mode: str,
    log_path: Path,
) -> list[str]:
    """Plain-text summary lines (used for log output and non-rich consumers)."""
    lines = [
        f"System: {system.model_name} ({system.chip}, {system.memory} RAM)",
        f"OS:     {system.os_full}",
    ]
    if summary is None:
        lines.append(NO_DATA_MESSAGE)
        return lines
    lines.extend(
        [
            f"Start Time:      {summary.start_time.strftime(TIMESTAMP_FORMAT)}",
            f"End Time:        {summary.end_time.strftime(TIMESTAMP_FORMAT)}",
            f"Duration:        {summary.duration_hours:.2f} hours ({summary.duration_minutes} minutes)",
            f"Start Battery:   {summary.start_percent}%",
            f"End Battery:     {summary.end_percent}%",
        ]
    )
    if summary.has_drain_stats:
        lines.extend(
            [
                f"Battery Drain:   {summary.drain_percent}%",
                f"Drain Rate:      {summary.drain_rate_per_hour:.2f}% per hour",
                f"Est. Full Life:  {summary.estimated_full_life_hours:.2f} hours",
            ]
        )
    lines.append(f"Workload Mode:   {mode}")
    lines.append(f"Log File:        {log_path}")
    return lines
