"""Tests for stopping a task together with every process it spawned."""

from __future__ import annotations

import time

import psutil
import pytest

from bb_runner.models.config import RunConfig
from bb_runner.workloads.base import WorkloadTask


pytestmark = [pytest.mark.unit, pytest.mark.unit_runner, pytest.mark.slow]


class ForkingTask(WorkloadTask):
    role = "forking"
    tool_names = ("sh", "sleep")

    def _build_command(self) -> list[str]:
        # A shell that ignores SIGTERM and leaves children behind.
        return ["sh", "-c", "trap '' TERM; sleep 30 & sleep 30 & wait"]


def _gone(proc: psutil.Process) -> bool:
    try:
        return proc.status() == psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return True


def test_stop_kills_descendants() -> None:
    task = ForkingTask(RunConfig())
    handle = task.start()
    leader = psutil.Process(handle.pid)
    deadline = time.monotonic() + 5.0
    while len(leader.children()) < 2 and time.monotonic() < deadline:
        time.sleep(0.05)
    children = leader.children(recursive=True)
    assert len(children) >= 2

    task.stop()

    assert handle.is_alive() is False
    assert all(_gone(child) for child in children)
    task.stop()
