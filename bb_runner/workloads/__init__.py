"""Background workload tasks driven by the task supervisor."""

from bb_runner.workloads.base import (
    STOP_GRACE_SECONDS,
    LoopTask,
    TaskHandle,
    WorkloadTask,
    terminate_process_tree,
)
from bb_runner.workloads.browser import BrowserRefreshLoop
from bb_runner.workloads.build_loop import BuildLoop
from bb_runner.workloads.cpu_stress import CPU_PROFILES, CpuProfile, CpuStressLoop
from bb_runner.workloads.disk_io import DiskIoLoop
from bb_runner.workloads.registry import build_workload_tasks, create_loop_task
from bb_runner.workloads.sleep_preventer import SleepPreventer

__all__ = [
    "CPU_PROFILES",
    "STOP_GRACE_SECONDS",
    "BrowserRefreshLoop",
    "BuildLoop",
    "CpuProfile",
    "CpuStressLoop",
    "DiskIoLoop",
    "LoopTask",
    "SleepPreventer",
    "TaskHandle",
    "WorkloadTask",
    "build_workload_tasks",
    "create_loop_task",
    "terminate_process_tree",
]
