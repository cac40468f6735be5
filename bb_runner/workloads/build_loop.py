"""External build workload: endless clean/build cycles of an Xcode project."""

from __future__ import annotations

from pathlib import Path
from typing import ClassVar

from bb_runner.workloads.base import LoopTask, run_quiet


class BuildLoop(LoopTask):
    """Clean then build forever; build failures do not matter, only the load."""

    role: ClassVar[str] = "build"
    tool_names: ClassVar[tuple[str, ...]] = ("xcodebuild",)

    def _validate_environment(self) -> bool:
        if not self.config.build_project_valid:
            return False
        return super()._validate_environment()

    def _project_args(self) -> tuple[Path, list[str]]:
        """Working directory plus the project selector for ``xcodebuild``."""
        path = self.config.workload_path
        assert path is not None
        if path.suffix == ".xcodeproj":
            return path.parent, ["-project", path.name]
        return path, []

    def clean_command(self) -> list[str]:
        _, selector = self._project_args()
        return ["xcodebuild", *selector, "clean"]

    def build_command(self) -> list[str]:
        _, selector = self._project_args()
        return ["xcodebuild", *selector, "build", "-configuration", "Release"]

    def run_iteration(self) -> None:
        workdir, _ = self._project_args()
        run_quiet(self.clean_command(), cwd=workdir)
        run_quiet(self.build_command(), cwd=workdir)
