"""Presenter for the end-of-run battery summary."""

from __future__ import annotations

from typing import Optional

from rich.table import Table

from bb_runner.api import RunResult, RunSummary, SystemInfo
from bb_runner.models.telemetry import TIMESTAMP_FORMAT
from bb_runner.services.summary import NO_DATA_MESSAGE


def summary_rows(
    summary: Optional[RunSummary], system: SystemInfo, mode: str, log_file: str
) -> list[tuple[str, str]]:
    """Label/value pairs shown in the summary table."""
    rows = [
        ("System", f"{system.model_name} ({system.chip}, {system.memory} RAM)"),
        ("OS", system.os_full),
    ]
    if summary is None:
        rows.append(("Result", NO_DATA_MESSAGE))
        return rows
    rows += [
        ("Start Time", summary.start_time.strftime(TIMESTAMP_FORMAT)),
        ("End Time", summary.end_time.strftime(TIMESTAMP_FORMAT)),
        ("Duration", f"{summary.duration_hours:.2f} hours ({summary.duration_minutes} minutes)"),
        ("Start Battery", f"{summary.start_percent}%"),
        ("End Battery", f"{summary.end_percent}%"),
    ]
    if summary.has_drain_stats:
        rows += [
            ("Battery Drain", f"{summary.drain_percent}%"),
            ("Drain Rate", f"{summary.drain_rate_per_hour:.2f}% per hour"),
            ("Est. Full Life", f"{summary.estimated_full_life_hours:.2f} hours"),
        ]
    rows += [("Workload Mode", mode), ("Log File", log_file)]
    return rows


def build_summary_table(result: RunResult, mode: str) -> Table:
    table = Table(title="Battery Test Summary", show_header=False, title_style="bold")
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value")
    for label, value in summary_rows(result.summary, result.system, mode, str(result.log_path)):
        table.add_row(label, value)
    return table
