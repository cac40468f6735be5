"""
Base classes for background workload tasks.

Every task runs in its own session (and therefore its own process group) so
that stopping it reaches the whole subtree it spawned, not only the process
we launched. Loop variants run their iterations in a worker process
(``python -m bb_runner.workloads.worker``); the sleep preventer is a plain
command held open for the duration of the run.
"""

from __future__ import annotations

import logging
import os
import shutil
import signal
import subprocess
import sys
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, ClassVar, Optional

import psutil

from bb_common.errors import WorkloadError
from bb_runner.models.config import RunConfig


logger = logging.getLogger(__name__)

STOP_GRACE_SECONDS = 0.5


@dataclass
class TaskHandle:
    """Reference to one running task: a process group leader or a thread."""

    role: str
    process: Optional[subprocess.Popen] = None
    thread: Optional[threading.Thread] = None

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid if self.process is not None else None

    def is_alive(self) -> bool:
        if self.process is not None:
            return self.process.poll() is None
        if self.thread is not None:
            return self.thread.is_alive()
        return False


def _signal_group(pgid: int, sig: signal.Signals) -> None:
    try:
        os.killpg(pgid, sig)
    except (ProcessLookupError, PermissionError):
        pass


def _signal_members(members: list[psutil.Process], sig: signal.Signals) -> None:
    for member in members:
        try:
            member.send_signal(sig)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue


def terminate_process_tree(
    process: subprocess.Popen,
    grace_seconds: float = STOP_GRACE_SECONDS,
) -> None:
    """SIGTERM the process group and its descendants, then SIGKILL survivors.

    Descendants are snapshotted with psutil before signalling so processes
    that left the group (e.g. via setsid) are still reached.
    """
    try:
        leader = psutil.Process(process.pid)
        members = [leader, *leader.children(recursive=True)]
    except psutil.NoSuchProcess:
        members = []

    _signal_group(process.pid, signal.SIGTERM)
    _signal_members(members, signal.SIGTERM)
    _, alive = psutil.wait_procs(members, timeout=grace_seconds)

    _signal_group(process.pid, signal.SIGKILL)
    if alive:
        logger.debug("Force killing %d process(es) of group %s", len(alive), process.pid)
        _signal_members(alive, signal.SIGKILL)
        psutil.wait_procs(alive, timeout=grace_seconds)

    try:
        process.wait(timeout=grace_seconds)
    except subprocess.TimeoutExpired:
        logger.warning("Process %s did not exit after SIGKILL", process.pid)


def run_quiet(cmd: list[str], cwd: Path | None = None) -> bool:
    """Run a command discarding its output; True on a zero exit code."""
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    except OSError as exc:
        logger.debug("Command %s could not be executed: %s", cmd[0], exc)
        return False
    return result.returncode == 0


class WorkloadTask(ABC):
    """Abstract base class for all background workload tasks."""

    role: ClassVar[str]
    tool_names: ClassVar[tuple[str, ...]] = ()

    def __init__(self, config: RunConfig):
        self.config = config
        self._handle: Optional[TaskHandle] = None
        self._stopped = False

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    def _build_command(self) -> list[str]:
        """Return the command that runs this task."""

    def _validate_environment(self) -> bool:
        for tool in self.tool_names:
            if shutil.which(tool) is None:
                logger.error("%s binary not found in PATH.", tool)
                return False
        return True

    def prepare(self) -> None:
        """Optional hook executed in the supervisor before the process starts."""
        return None

    def cleanup(self) -> None:
        """Optional hook releasing resources owned by the task; idempotent."""
        return None

    def _popen_kwargs(self) -> dict[str, Any]:
        return {
            "stdin": subprocess.DEVNULL,
            "stdout": subprocess.DEVNULL,
            "stderr": subprocess.DEVNULL,
            "start_new_session": True,
            "close_fds": True,
        }

    def start(self) -> TaskHandle:
        """Spawn the task in its own process group."""
        if self._handle is not None and self._handle.is_alive():
            logger.warning("%s is already running", self.name)
            return self._handle

        if not self._validate_environment():
            raise WorkloadError(
                f"{self.name} cannot run in this environment",
                context={"role": self.role, "tools": list(self.tool_names)},
            )

        self.prepare()
        cmd = self._build_command()
        try:
            process = subprocess.Popen(cmd, **self._popen_kwargs())
        except OSError as exc:
            raise WorkloadError(
                f"{self.name} failed to start",
                context={"role": self.role, "command": cmd[0]},
                cause=exc,
            ) from exc
        self._handle = TaskHandle(role=self.role, process=process)
        self._stopped = False
        logger.info("Started %s (PID: %s)", self.name, process.pid)
        return self._handle

    def stop(self) -> None:
        """Terminate the task subtree. Safe to call repeatedly."""
        handle = self._handle
        if handle is None or handle.process is None or self._stopped:
            return
        # The leader may already be gone while group members linger.
        terminate_process_tree(handle.process)
        self._stopped = True
        logger.info("Stopped %s", self.name)


class LoopTask(WorkloadTask):
    """Workload that repeats an iteration forever inside a worker process.

    Iteration failures are logged at debug level and never end the loop.
    """

    interval_seconds: ClassVar[float] = 0.0

    def __init__(self, config: RunConfig):
        super().__init__(config)
        self._sleep: Callable[[float], None] = time.sleep

    def _worker_args(self) -> list[str]:
        return []

    def _build_command(self) -> list[str]:
        return [
            sys.executable,
            "-m",
            "bb_runner.workloads.worker",
            self.role,
            "--config",
            self.config.to_json(),
            *self._worker_args(),
        ]

    def setup_worker(self) -> None:
        """Runs once in the worker process before the first iteration."""
        return None

    @abstractmethod
    def run_iteration(self) -> None:
        """Perform one unit of background work."""

    def run_loop(self, max_iterations: Optional[int] = None) -> int:
        """Run iterations until killed (or ``max_iterations`` is reached)."""
        self.setup_worker()
        completed = 0
        while max_iterations is None or completed < max_iterations:
            try:
                self.run_iteration()
            except Exception as exc:  # noqa: BLE001
                logger.debug("%s iteration failed: %s", self.name, exc)
            completed += 1
            if self.interval_seconds > 0 and (max_iterations is None or completed < max_iterations):
                self._sleep(self.interval_seconds)
        return completed
