"""Timed battery sampling loop feeding the telemetry log."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from enum import Enum
from typing import Callable, ClassVar, Optional

from bb_common.errors import PowerUnavailableError, ResultPersistenceError, SampleParseError
from bb_runner.models.config import RunConfig
from bb_runner.models.telemetry import TelemetrySample
from bb_runner.services.power_state import PowerStateReader
from bb_runner.services.telemetry_log import TelemetryLog
from bb_runner.workloads.base import TaskHandle


logger = logging.getLogger(__name__)


class LoggerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    SHUTDOWN_DETECTED = "shutdown_detected"
    TARGET_REACHED = "target_reached"
    CLOSED = "closed"


class TelemetryLogger:
    """Sample the power state every ``log_interval_seconds`` in a thread.

    State machine: IDLE -> RUNNING -> (STOPPING | SHUTDOWN_DETECTED |
    TARGET_REACHED) -> CLOSED. Reaching SHUTDOWN_DETECTED or TARGET_REACHED
    calls ``on_finish`` so the controller can start the shared shutdown.
    """

    role: ClassVar[str] = "logger"

    def __init__(
        self,
        config: RunConfig,
        reader: PowerStateReader,
        log: TelemetryLog,
        *,
        on_finish: Optional[Callable[[LoggerState], None]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config
        self._reader = reader
        self._log = log
        self._on_finish = on_finish
        self._clock = clock
        self._state = LoggerState.IDLE
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.samples_written = 0

    @property
    def name(self) -> str:
        return "TelemetryLogger"

    @property
    def state(self) -> LoggerState:
        return self._state

    def start(self) -> TaskHandle:
        with self._state_lock:
            if self._state != LoggerState.IDLE:
                raise RuntimeError(f"Telemetry logger cannot start from {self._state.value}")
            self._state = LoggerState.RUNNING
        self._thread = threading.Thread(
            target=self._sampling_loop, name="telemetry-logger", daemon=True
        )
        self._thread.start()
        logger.info(
            "Started battery logger (interval: %ss)", self.config.log_interval_seconds
        )
        if self.config.target_percent is not None:
            logger.info("Will stop automatically at %s%% battery", self.config.target_percent)
        return TaskHandle(role=self.role, thread=self._thread)

    def _transition(self, target: LoggerState) -> bool:
        with self._state_lock:
            if self._state not in (LoggerState.IDLE, LoggerState.RUNNING):
                return False
            self._state = target
            return True

    def _finish(self, target: LoggerState) -> None:
        if self._transition(target) and self._on_finish is not None:
            self._on_finish(target)

    def tick(self) -> bool:
        """Take one sample. Returns False when sampling must end."""
        try:
            sample = self._reader.read()
        except PowerUnavailableError:
            logger.warning("Power status disappeared; assuming shutdown")
            self._append(TelemetrySample.shutdown(self._clock()))
            self._finish(LoggerState.SHUTDOWN_DETECTED)
            return False
        except SampleParseError as exc:
            logger.debug("Dropped malformed power sample: %s", exc)
            return True

        self._append(sample)
        target = self.config.target_percent
        if target is not None and sample.percent <= target:
            logger.info(
                "Target battery level %s%% reached (current: %s%%)", target, sample.percent
            )
            self._finish(LoggerState.TARGET_REACHED)
            return False
        return True

    def _append(self, sample: TelemetrySample) -> None:
        self._log.append(sample)
        self.samples_written += 1

    def _sampling_loop(self) -> None:
        while not self._stop_event.is_set() and self._state == LoggerState.RUNNING:
            try:
                keep_going = self.tick()
            except ResultPersistenceError as exc:
                logger.debug("Telemetry log closed under the sampler: %s", exc)
                break
            if not keep_going:
                break
            self._stop_event.wait(self.config.log_interval_seconds)

    def stop(self) -> None:
        """Stop sampling and wait for the thread. Safe to call repeatedly."""
        self._transition(LoggerState.STOPPING)
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=5.0)
            if thread.is_alive():
                logger.warning("Telemetry logger thread did not terminate")

    def cleanup(self) -> None:
        return None

    def close(self, finished_at: Optional[datetime] = None) -> None:
        """Write the log trailer exactly once and enter CLOSED."""
        with self._state_lock:
            if self._state == LoggerState.CLOSED:
                return
            if self._state == LoggerState.RUNNING:
                self._state = LoggerState.STOPPING
        self._stop_event.set()
        self._log.close(finished_at or self._clock())
        with self._state_lock:
            self._state = LoggerState.CLOSED

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
