"""Keep the host awake for the duration of the run."""

from __future__ import annotations

import platform
from typing import ClassVar

from bb_runner.workloads.base import WorkloadTask


class SleepPreventer(WorkloadTask):
    """Pure resource hold: a long-lived process holding a sleep assertion."""

    role: ClassVar[str] = "caffeinate"

    def __init__(self, config, system: str | None = None):
        super().__init__(config)
        self._system = system or platform.system()

    @property
    def tool_names(self) -> tuple[str, ...]:  # type: ignore[override]
        return ("caffeinate",) if self._system == "Darwin" else ("systemd-inhibit", "sleep")

    def _build_command(self) -> list[str]:
        if self._system == "Darwin":
            return ["caffeinate", "-dimsu"]
        return [
            "systemd-inhibit",
            "--what=idle:sleep",
            "--who=battery-bench",
            "--why=Battery benchmark in progress",
            "--mode=block",
            "sleep",
            "infinity",
        ]
