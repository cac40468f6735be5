"""Run controller wiring configuration, tasks, sampling and shutdown."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from bb_common.errors import NoBatteryError
from bb_runner.engine.supervisor import TaskSupervisor
from bb_runner.engine.telemetry_logger import LoggerState, TelemetryLogger
from bb_runner.models.config import RunConfig
from bb_runner.services.power_state import PowerStateReader, create_power_reader
from bb_runner.services.summary import RunSummary, format_summary_lines, summarize_log
from bb_runner.services.system_info import SystemInfoCollector
from bb_runner.services.system_info_types import SystemInfo
from bb_runner.services.telemetry_log import TelemetryLog, build_header_lines, log_filename
from bb_runner.stop_token import StopToken


logger = logging.getLogger(__name__)

POLL_SECONDS = 1.0


class StopReason(str, Enum):
    INTERRUPTED = "interrupted"
    TARGET_REACHED = "target_reached"
    POWER_UNAVAILABLE = "power_unavailable"
    LOGGER_EXITED = "logger_exited"


_LOGGER_REASONS = {
    LoggerState.TARGET_REACHED: StopReason.TARGET_REACHED,
    LoggerState.SHUTDOWN_DETECTED: StopReason.POWER_UNAVAILABLE,
}


@dataclass(frozen=True)
class RunResult:
    reason: StopReason
    log_path: Path
    system: SystemInfo
    summary: Optional[RunSummary]


class RunController:
    """Drive one battery run from precondition check to summary.

    Every way a run can end (signal, target reached, power status gone)
    trips the same :class:`StopToken`; :meth:`shutdown` then runs once on the
    calling thread.
    """

    def __init__(
        self,
        config: RunConfig,
        *,
        reader: Optional[PowerStateReader] = None,
        system_info: Optional[SystemInfoCollector] = None,
        supervisor: Optional[TaskSupervisor] = None,
        clock: Callable[[], datetime] = datetime.now,
        enable_signals: bool = True,
        poll_seconds: float = POLL_SECONDS,
        on_started: Optional[Callable[["RunController"], None]] = None,
    ) -> None:
        self.config = config
        self._reader = reader or create_power_reader()
        self._system_info = system_info or SystemInfoCollector()
        self._supervisor = supervisor or TaskSupervisor()
        self._clock = clock
        self._enable_signals = enable_signals
        self._poll_seconds = poll_seconds
        self._on_started = on_started
        self._token: Optional[StopToken] = None
        self._telemetry: Optional[TelemetryLogger] = None
        self._log: Optional[TelemetryLog] = None
        self._system: Optional[SystemInfo] = None
        self._result: Optional[RunResult] = None
        self._shutdown_started = False

    @property
    def log_path(self) -> Optional[Path]:
        return self._log.path if self._log is not None else None

    def _now(self) -> datetime:
        return self._clock().replace(microsecond=0)

    def _check_battery(self) -> None:
        if not self._reader.has_battery():
            raise NoBatteryError(
                "No internal battery detected. This benchmark needs a laptop; "
                "desktop hosts are not supported."
            )

    def _prepare_log(self, started_at: datetime) -> TelemetryLog:
        assert self._system is not None
        path = self.config.output_dir / log_filename(started_at)
        return TelemetryLog.create(path, build_header_lines(self.config, self._system, started_at))

    def _on_logger_finished(self, state: LoggerState) -> None:
        if self._token is not None:
            self._token.request_stop(_LOGGER_REASONS.get(state, StopReason.LOGGER_EXITED).value)

    def _on_stop_requested(self, reason: str) -> None:
        logger.info("Stop requested (%s)", reason)

    def run(self) -> RunResult:
        logger.info("Gathering system information...")
        self._check_battery()
        self._system = self._system_info.collect()

        started_at = self._now()
        self._log = self._prepare_log(started_at)
        logger.info("Starting battery benchmark (mode: %s)", self.config.mode.value)

        self._token = StopToken(enable_signals=self._enable_signals, on_stop=self._on_stop_requested)
        with self._token:
            try:
                self._telemetry = TelemetryLogger(
                    self.config,
                    self._reader,
                    self._log,
                    on_finish=self._on_logger_finished,
                    clock=self._clock,
                )
                self._supervisor.start_all(self.config, self._telemetry)
                if self._on_started is not None:
                    self._on_started(self)
                self._wait_for_stop()
            finally:
                result = self.shutdown()
        return result

    def _wait_for_stop(self) -> None:
        assert self._token is not None and self._telemetry is not None
        while not self._token.wait(self._poll_seconds):
            for role in self._supervisor.exited_roles():
                if role != TelemetryLogger.role:
                    logger.warning("Workload task '%s' exited; continuing degraded", role)
            if not self._telemetry.is_alive():
                self._token.request_stop(StopReason.LOGGER_EXITED.value)

    def request_stop(self, reason: StopReason = StopReason.INTERRUPTED) -> None:
        if self._token is not None:
            self._token.request_stop(reason.value)

    def shutdown(self) -> RunResult:
        """Stop everything, close the log and compute the summary (once).

        The result is recorded even when a step fails, so a repeated call
        returns it (with ``summary=None``) instead of redoing the teardown.
        """
        if self._shutdown_started:
            if self._result is None:
                raise RuntimeError("shutdown() is already in progress")
            return self._result
        if self._log is None or self._system is None:
            raise RuntimeError("shutdown() called before run() created the log")
        self._shutdown_started = True

        summary: Optional[RunSummary] = None
        try:
            self._supervisor.stop_all()
            if self._telemetry is not None:
                self._telemetry.close(self._now())
            else:
                self._log.close(self._now())
            summary = summarize_log(self._log.path)
        finally:
            self._result = RunResult(
                reason=self._stop_reason(),
                log_path=self._log.path,
                system=self._system,
                summary=summary,
            )

        for line in format_summary_lines(
            summary, system=self._system, mode=self.config.mode.value, log_path=self._log.path
        ):
            logger.debug(line)
        logger.info("Cleanup complete (%s)", self._result.reason.value)
        return self._result

    def _stop_reason(self) -> StopReason:
        reason_value = self._token.reason if self._token is not None else None
        return StopReason(reason_value) if reason_value else StopReason.INTERRUPTED
