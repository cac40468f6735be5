"""End-to-end tests for the run controller with fake tasks and readers."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

import pytest

from bb_common.errors import NoBatteryError, PowerUnavailableError
from bb_runner.engine import controller as controller_module
from bb_runner.engine.controller import RunController, StopReason
from bb_runner.engine.supervisor import TaskSupervisor
from bb_runner.models.config import RunConfig
from bb_runner.models.telemetry import TIMESTAMP_FORMAT
from bb_runner.services.system_info_types import SystemInfo
from bb_runner.workloads.base import TaskHandle


pytestmark = [pytest.mark.unit, pytest.mark.unit_runner]


class FakeCollector:
    def collect(self) -> SystemInfo:
        return SystemInfo(model_name="MacBook Pro", model_id="Mac15,6", chip="Apple M3")


def _controller(config: RunConfig, reader, **kwargs) -> RunController:
    return RunController(
        config,
        reader=reader,
        system_info=FakeCollector(),
        supervisor=TaskSupervisor(task_factory=lambda cfg: []),
        enable_signals=False,
        poll_seconds=0.05,
        **kwargs,
    )


def _data_rows(path: Path) -> list[list[str]]:
    lines = [line for line in path.read_text().splitlines() if not line.startswith("#")]
    return [line.split(",") for line in lines[1:]]


def test_run_stops_at_target(tmp_path: Path, scripted_reader) -> None:
    config = RunConfig(log_interval_seconds=1, target_percent=50, browser_enabled=False, output_dir=tmp_path)
    result = _controller(config, scripted_reader([60, 50])).run()

    assert result.reason is StopReason.TARGET_REACHED
    assert result.log_path.parent == tmp_path
    assert result.log_path.name.startswith("battery_log_")
    assert [row[1] for row in _data_rows(result.log_path)] == ["60", "50"]
    assert result.summary is not None
    assert (result.summary.start_percent, result.summary.end_percent) == (60, 50)

    content = result.log_path.read_text().splitlines()
    assert content[0] == "# Battery Benchmark Test"
    assert content[-1].startswith("# Test finished at ")
    assert "# Target: Stop at 50%" in content


def test_log_timestamps_are_ordered_after_start(tmp_path: Path, scripted_reader) -> None:
    config = RunConfig(log_interval_seconds=1, target_percent=50, browser_enabled=False, output_dir=tmp_path)
    result = _controller(config, scripted_reader([70, 60, 50])).run()

    content = result.log_path.read_text().splitlines()
    started = next(line for line in content if line.startswith("# Started: "))
    start_time = datetime.strptime(started[len("# Started: "):], TIMESTAMP_FORMAT)
    stamps = [datetime.strptime(row[0], TIMESTAMP_FORMAT) for row in _data_rows(result.log_path)]
    assert stamps == sorted(stamps)
    assert stamps[0] >= start_time


def test_power_loss_ends_run_with_shutdown_row(tmp_path: Path, scripted_reader) -> None:
    config = RunConfig(log_interval_seconds=1, browser_enabled=False, output_dir=tmp_path)
    result = _controller(config, scripted_reader([40, PowerUnavailableError("gone")])).run()

    assert result.reason is StopReason.POWER_UNAVAILABLE
    rows = _data_rows(result.log_path)
    assert rows[-1][1:] == ["0", "shutdown", ""]
    assert result.summary is not None and result.summary.end_percent == 0


def test_interrupt_after_start(tmp_path: Path, scripted_reader) -> None:
    config = RunConfig(log_interval_seconds=3600, browser_enabled=False, output_dir=tmp_path)
    started: list[Path] = []

    def interrupt(controller: RunController) -> None:
        started.append(controller.log_path)
        controller.request_stop()

    controller = _controller(config, scripted_reader([90]), on_started=interrupt)
    result = controller.run()

    assert result.reason is StopReason.INTERRUPTED
    assert started == [result.log_path]
    assert controller.shutdown() is result
    trailers = [line for line in result.log_path.read_text().splitlines() if line.startswith("# Test finished")]
    assert len(trailers) == 1


def test_no_battery_creates_no_log(tmp_path: Path, scripted_reader) -> None:
    config = RunConfig(output_dir=tmp_path)
    with pytest.raises(NoBatteryError):
        _controller(config, scripted_reader([], battery=False)).run()
    assert list(tmp_path.iterdir()) == []


class LogSnapshotTask:
    """Fake workload that records what the log looked like at start and stop."""

    role = "cpu"

    def __init__(self, output_dir: Path):
        self.output_dir = output_dir
        self.seen_at_start: list[str] = []
        self.seen_at_stop: list[str] = []

    @property
    def name(self) -> str:
        return "LogSnapshotTask"

    def _log_lines(self) -> list[str]:
        logs = sorted(self.output_dir.glob("battery_log_*.csv"))
        return logs[0].read_text().splitlines() if logs else []

    def start(self) -> TaskHandle:
        self.seen_at_start = self._log_lines()
        return TaskHandle(role=self.role)

    def stop(self) -> None:
        self.seen_at_stop = self._log_lines()

    def cleanup(self) -> None:
        return None


def test_header_precedes_tasks_and_trailer_follows_stop(tmp_path: Path, scripted_reader) -> None:
    config = RunConfig(log_interval_seconds=3600, browser_enabled=False, output_dir=tmp_path)
    task = LogSnapshotTask(tmp_path)
    controller = RunController(
        config,
        reader=scripted_reader([90]),
        system_info=FakeCollector(),
        supervisor=TaskSupervisor(task_factory=lambda cfg: [task]),
        enable_signals=False,
        poll_seconds=0.05,
        on_started=lambda ctl: ctl.request_stop(),
    )
    result = controller.run()

    assert task.seen_at_start
    assert task.seen_at_start[0] == "# Battery Benchmark Test"
    assert task.seen_at_start[-1] == "timestamp,battery_percent,power_state,time_remaining"
    assert task.seen_at_stop
    assert not any(line.startswith("# Test finished") for line in task.seen_at_stop)
    assert result.log_path.read_text().splitlines()[-1].startswith("# Test finished at ")


def test_failed_shutdown_still_records_result(tmp_path: Path, scripted_reader, monkeypatch) -> None:
    def broken_summary(path: Path):
        raise ValueError("unreadable log")

    monkeypatch.setattr(controller_module, "summarize_log", broken_summary)
    config = RunConfig(log_interval_seconds=3600, browser_enabled=False, output_dir=tmp_path)
    controller = _controller(config, scripted_reader([90]), on_started=lambda ctl: ctl.request_stop())

    with pytest.raises(ValueError):
        controller.run()

    result = controller.shutdown()
    assert result.reason is StopReason.INTERRUPTED
    assert result.summary is None
    assert controller.shutdown() is result
    trailers = [line for line in result.log_path.read_text().splitlines() if line.startswith("# Test finished")]
    assert len(trailers) == 1


def test_shutdown_before_run_is_rejected(tmp_path: Path, scripted_reader) -> None:
    controller = _controller(RunConfig(output_dir=tmp_path), scripted_reader([90]))
    with pytest.raises(RuntimeError):
        controller.shutdown()


def test_stop_reason_is_logged(tmp_path: Path, scripted_reader, caplog) -> None:
    caplog.set_level(logging.INFO, logger="bb_runner.engine.controller")
    config = RunConfig(log_interval_seconds=3600, browser_enabled=False, output_dir=tmp_path)
    _controller(config, scripted_reader([90]), on_started=lambda ctl: ctl.request_stop()).run()
    assert "Stop requested (interrupted)" in caplog.text
