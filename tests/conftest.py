from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable, Union

import pytest
from rich.console import Console
from rich.table import Table

from bb_runner.models.config import RunConfig
from bb_runner.models.telemetry import TelemetrySample


KNOWN_MARKERS = ("unit", "unit_common", "unit_runner", "unit_ui", "slow")

ReadStep = Union[int, TelemetrySample, Exception]


class SteppingClock:
    """Deterministic clock advancing a fixed step per call."""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)) -> None:
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current += self.step
        return value


class ScriptedReader:
    """Power reader replaying a script of percents, samples or errors.

    Once the script is exhausted the last percent is repeated.
    """

    def __init__(self, steps: Iterable[ReadStep], *, battery: bool = True, clock=None) -> None:
        self.steps = list(steps)
        self.battery = battery
        self.clock = clock or datetime.now
        self.reads = 0
        self._last: ReadStep = 100

    def has_battery(self) -> bool:
        return self.battery

    def read(self) -> TelemetrySample:
        step = self.steps.pop(0) if self.steps else self._last
        self.reads += 1
        if isinstance(step, Exception):
            raise step
        if isinstance(step, TelemetrySample):
            return step
        self._last = step
        return TelemetrySample(
            timestamp=self.clock().replace(microsecond=0),
            percent=step,
            state="discharging",
            time_remaining="3:10",
        )


@pytest.fixture
def run_config(tmp_path: Path) -> RunConfig:
    return RunConfig(log_interval_seconds=1, browser_enabled=False, output_dir=tmp_path)


@pytest.fixture
def scripted_reader():
    return ScriptedReader


@pytest.fixture
def stepping_clock() -> SteppingClock:
    return SteppingClock(datetime(2024, 5, 1, 9, 0, 0))


def pytest_terminal_summary(terminalreporter, exitstatus, config):
    """Print pass/fail counts grouped by marker at the end of the session."""
    _ = (exitstatus, config)
    stats = defaultdict(lambda: {"passed": 0, "failed": 0, "skipped": 0, "total": 0, "duration": 0.0})

    for outcome in ("passed", "failed", "skipped"):
        for report in terminalreporter.stats.get(outcome, []):
            if report.when != "call" and not (report.when == "setup" and report.outcome == "skipped"):
                continue
            for marker in KNOWN_MARKERS:
                if marker in report.keywords:
                    bucket = stats[marker]
                    bucket[outcome] += 1
                    bucket["total"] += 1
                    bucket["duration"] += getattr(report, "duration", 0.0)

    if not stats:
        return

    table = Table(title="Test Statistics by Marker", show_header=True, header_style="bold magenta")
    table.add_column("Marker", style="cyan")
    table.add_column("Total", justify="right")
    table.add_column("Passed", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Duration (s)", justify="right", style="blue")

    for marker in sorted(stats):
        bucket = stats[marker]
        table.add_row(
            marker,
            str(bucket["total"]),
            str(bucket["passed"]),
            str(bucket["failed"]),
            str(bucket["skipped"]),
            f"{bucket['duration']:.2f}",
        )

    console = Console()
    console.print("\n")
    console.print(table)
