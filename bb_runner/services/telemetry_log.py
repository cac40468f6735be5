"""Append-only CSV persistence for telemetry samples."""

from __future__ import annotations

import csv
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Iterable

from bb_common.errors import ResultPersistenceError
from bb_runner.models.config import RunConfig
from bb_runner.models.telemetry import LOG_COLUMNS, TIMESTAMP_FORMAT, TelemetrySample
from bb_runner.services.system_info_types import SystemInfo


logger = logging.getLogger(__name__)

LOG_PREFIX = "battery_log_"


def log_filename(started_at: datetime) -> str:
    """Return ``battery_log_<YYYYMMDD>_<HHMM>.csv`` for a run start time."""
    return f"{LOG_PREFIX}{started_at.strftime('%Y%m%d_%H%M')}.csv"


def build_header_lines(
    config: RunConfig, system: SystemInfo, started_at: datetime
) -> list[str]:
    """Metadata block written above the column row."""
    lines = [
        "Battery Benchmark Test",
        f"Started: {started_at.strftime(TIMESTAMP_FORMAT)}",
        "--------------------------------------",
        *system.header_lines(),
        "--------------------------------------",
        "Test Settings:",
        f"Mode:    {config.mode.value}",
    ]
    if config.target_percent is not None:
        lines.append(f"Target: Stop at {config.target_percent}%")
    lines.append(f"Log Interval: {config.log_interval_seconds}s")
    lines.append(f"Browser: {config.browser_app if config.browser_enabled else 'disabled'}")
    if config.build_project_valid:
        lines.append(f"Build Project: {config.workload_path}")
    return lines


class TelemetryLog:
    """Telemetry CSV with a ``#`` metadata header and a ``#`` trailer.

    The header block and the column row are written on creation. Rows are
    appended one at a time and flushed immediately so a sudden power loss
    keeps everything sampled so far. The trailer is written exactly once.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._closed = False
        self._lock = threading.Lock()

    @classmethod
    def create(cls, path: Path, header_lines: Iterable[str]) -> "TelemetryLog":
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", newline="", encoding="utf-8") as handle:
                for line in header_lines:
                    handle.write(f"# {line}\n" if line else "#\n")
                csv.writer(handle, lineterminator="\n").writerow(LOG_COLUMNS)
        except OSError as exc:
            raise ResultPersistenceError(
                "Failed to create telemetry log",
                context={"path": path},
                cause=exc,
            ) from exc
        logger.info("Created telemetry log %s", path)
        return cls(path)

    @property
    def closed(self) -> bool:
        return self._closed

    def append(self, sample: TelemetrySample) -> None:
        with self._lock:
            if self._closed:
                raise ResultPersistenceError(
                    "Telemetry log is closed",
                    context={"path": self.path},
                )
            with self.path.open("a", newline="", encoding="utf-8") as handle:
                csv.writer(handle, lineterminator="\n").writerow(sample.to_row())

    def close(self, finished_at: datetime) -> bool:
        """Write the completion trailer. Returns False if already closed."""
        with self._lock:
            if self._closed:
                return False
            self._closed = True
            with self.path.open("a", newline="", encoding="utf-8") as handle:
                handle.write(f"# Test finished at {finished_at.strftime(TIMESTAMP_FORMAT)}\n")
        logger.debug("Closed telemetry log %s", self.path)
        return True
