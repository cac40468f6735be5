"""Task supervisor owning every background task of a run."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Protocol

from bb_common.errors import WorkloadError, error_to_payload
from bb_runner.models.config import RunConfig
from bb_runner.workloads.base import TaskHandle, WorkloadTask
from bb_runner.workloads.registry import build_workload_tasks


logger = logging.getLogger(__name__)

# The sleep preventer stops last; the host stays awake through teardown.
STOP_ORDER = ("browser", "build", "cpu", "disk", "logger", "caffeinate")


class SupervisedTask(Protocol):
    role: str

    @property
    def name(self) -> str:
        ...

    def start(self) -> TaskHandle:
        ...

    def stop(self) -> None:
        ...

    def cleanup(self) -> None:
        ...


TaskFactory = Callable[[RunConfig], list[WorkloadTask]]


class TaskSupervisor:
    """Start tasks best-effort and stop all of them exactly once.

    The role -> handle mapping is private; nothing outside the supervisor
    terminates a task.
    """

    def __init__(self, task_factory: TaskFactory = build_workload_tasks) -> None:
        self._task_factory = task_factory
        self._tasks: Dict[str, SupervisedTask] = {}
        self._handles: Dict[str, Optional[TaskHandle]] = {}
        self._started = False
        self._stopped = False
        self._reported_exits: set[str] = set()

    @property
    def handles(self) -> Dict[str, Optional[TaskHandle]]:
        """Snapshot of role -> handle (None means the role did not start)."""
        return dict(self._handles)

    @property
    def stopped(self) -> bool:
        return self._stopped

    def start_all(
        self,
        config: RunConfig,
        telemetry_logger: Optional[SupervisedTask] = None,
    ) -> Dict[str, Optional[TaskHandle]]:
        if self._started:
            raise RuntimeError("TaskSupervisor.start_all() may only be called once")
        self._started = True

        tasks: list[SupervisedTask] = list(self._task_factory(config))
        if telemetry_logger is not None:
            tasks.append(telemetry_logger)

        for task in tasks:
            # Registered before start: cleanup must reach half-started tasks.
            self._tasks[task.role] = task
            self._handles[task.role] = None
            if self._stopped:
                continue
            try:
                self._handles[task.role] = task.start()
            except (WorkloadError, OSError) as exc:
                payload = error_to_payload(exc) if isinstance(exc, WorkloadError) else {"error": str(exc)}
                logger.error("Failed to start %s; continuing without it: %s", task.name, payload)
        return self.handles

    def exited_roles(self) -> list[str]:
        """Roles whose task has exited since the last call."""
        exited = []
        for role, handle in self._handles.items():
            if handle is None or role in self._reported_exits:
                continue
            if not handle.is_alive():
                self._reported_exits.add(role)
                exited.append(role)
        return exited

    def stop_all(self) -> None:
        """Stop every task in STOP_ORDER, then release task resources.

        Idempotent: the state flag is checked first, so a second call (or a
        call from a signal handler during teardown) returns immediately.
        """
        if self._stopped:
            return
        self._stopped = True

        logger.info("Stopping workload...")
        ordered = [role for role in STOP_ORDER if role in self._tasks]
        ordered += [role for role in self._tasks if role not in STOP_ORDER]
        for role in ordered:
            task = self._tasks[role]
            try:
                task.stop()
            except Exception as exc:  # noqa: BLE001
                logger.error("Error stopping %s: %s", task.name, exc)

        for task in self._tasks.values():
            try:
                task.cleanup()
            except Exception as exc:  # noqa: BLE001
                logger.error("Error cleaning up %s: %s", task.name, exc)
