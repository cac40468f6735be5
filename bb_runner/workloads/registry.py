"""Workload task registry and the default task set for a run."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from bb_runner.models.config import RunConfig
from bb_runner.workloads.base import LoopTask, WorkloadTask
from bb_runner.workloads.browser import BrowserRefreshLoop
from bb_runner.workloads.build_loop import BuildLoop
from bb_runner.workloads.cpu_stress import CpuStressLoop
from bb_runner.workloads.disk_io import DiskIoLoop
from bb_runner.workloads.sleep_preventer import SleepPreventer


logger = logging.getLogger(__name__)

LOOP_TASKS: dict[str, type[LoopTask]] = {
    BrowserRefreshLoop.role: BrowserRefreshLoop,
    BuildLoop.role: BuildLoop,
    CpuStressLoop.role: CpuStressLoop,
    DiskIoLoop.role: DiskIoLoop,
}


def create_loop_task(
    role: str, config: RunConfig, scratch_dir: Optional[Path] = None
) -> LoopTask:
    """Rebuild a loop task inside a worker process."""
    if role == DiskIoLoop.role:
        return DiskIoLoop(config, scratch_dir=scratch_dir)
    try:
        task_cls = LOOP_TASKS[role]
    except KeyError:
        raise ValueError(f"Unknown loop task role: {role}") from None
    return task_cls(config)


def build_workload_tasks(config: RunConfig) -> list[WorkloadTask]:
    """Return the workload tasks of a run in start order."""
    tasks: list[WorkloadTask] = [SleepPreventer(config)]
    if config.browser_enabled:
        tasks.append(BrowserRefreshLoop(config))
    else:
        logger.info("Skipping browser automation (--no-browser)")
    if config.build_project_valid:
        tasks.append(BuildLoop(config))
    elif config.workload_path is not None:
        logger.warning("Build project %s is not a directory; build loop disabled", config.workload_path)
    tasks.append(CpuStressLoop(config))
    tasks.append(DiskIoLoop(config))
    return tasks
