"""Stable runner API surface."""

from bb_runner.engine.controller import RunController, RunResult, StopReason
from bb_runner.engine.supervisor import STOP_ORDER, TaskSupervisor
from bb_runner.engine.telemetry_logger import LoggerState, TelemetryLogger
from bb_runner.models.config import RunConfig, WorkloadMode
from bb_runner.models.telemetry import NO_ESTIMATE, PowerState, TelemetrySample
from bb_runner.services.power_state import (
    PmsetPowerStateReader,
    PowerStateReader,
    PsutilPowerStateReader,
    create_power_reader,
    parse_power_status,
)
from bb_runner.services.summary import RunSummary, format_summary_lines, summarize_log
from bb_runner.services.system_info import SystemInfoCollector
from bb_runner.services.system_info_types import SystemInfo
from bb_runner.services.telemetry_log import TelemetryLog
from bb_runner.stop_token import StopToken
from bb_runner.workloads import TaskHandle, WorkloadTask

__all__ = [
    "NO_ESTIMATE",
    "STOP_ORDER",
    "LoggerState",
    "PmsetPowerStateReader",
    "PowerState",
    "PowerStateReader",
    "PsutilPowerStateReader",
    "RunConfig",
    "RunController",
    "RunResult",
    "RunSummary",
    "StopReason",
    "StopToken",
    "SystemInfo",
    "SystemInfoCollector",
    "TaskHandle",
    "TaskSupervisor",
    "TelemetryLog",
    "TelemetryLogger",
    "TelemetrySample",
    "WorkloadMode",
    "WorkloadTask",
    "create_power_reader",
    "format_summary_lines",
    "parse_power_status",
    "summarize_log",
]
