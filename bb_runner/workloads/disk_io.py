"""Disk I/O workload: small versioned commits to a scratch git repository."""

from __future__ import annotations

import logging
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import ClassVar, Optional

from bb_runner.models.config import RunConfig
from bb_runner.workloads.base import LoopTask, run_quiet


logger = logging.getLogger(__name__)

SCRATCH_PREFIX = "bb-scratch-"
TRACKED_FILE = "file.txt"
GIT_IDENTITY = [
    "-c",
    "user.name=battery-bench",
    "-c",
    "user.email=battery-bench@localhost",
    "-c",
    "commit.gpgsign=false",
]


class DiskIoLoop(LoopTask):
    """Append, commit and compact every 20 seconds in a scratch repository.

    The repository directory is created by the supervisor side in
    :meth:`prepare` and removed by :meth:`cleanup`, whatever happened to the
    worker process.
    """

    role: ClassVar[str] = "disk"
    tool_names: ClassVar[tuple[str, ...]] = ("git",)
    interval_seconds: ClassVar[float] = 20.0

    def __init__(self, config: RunConfig, scratch_dir: Optional[Path] = None):
        super().__init__(config)
        self.scratch_dir = scratch_dir

    def prepare(self) -> None:
        if self.scratch_dir is None:
            self.scratch_dir = Path(tempfile.mkdtemp(prefix=SCRATCH_PREFIX))
            logger.info("Created temporary repository: %s", self.scratch_dir)

    def cleanup(self) -> None:
        path = self.scratch_dir
        if path is None:
            return
        self.scratch_dir = None
        if not path.exists():
            return
        shutil.rmtree(path, ignore_errors=True)
        if path.exists():
            logger.warning("Could not fully remove temporary repository: %s", path)
        else:
            logger.info("Removed temporary repository: %s", path)

    def _worker_args(self) -> list[str]:
        return ["--scratch-dir", str(self.scratch_dir)]

    def _git(self, *args: str) -> bool:
        return run_quiet(["git", *GIT_IDENTITY, *args], cwd=self.scratch_dir)

    def setup_worker(self) -> None:
        assert self.scratch_dir is not None
        self._git("init")
        (self.scratch_dir / TRACKED_FILE).touch()
        self._git("add", ".")
        self._git("commit", "-m", "Initial")

    def run_iteration(self) -> None:
        assert self.scratch_dir is not None
        stamp = datetime.now().strftime("%a %b %d %H:%M:%S %Y")
        with (self.scratch_dir / TRACKED_FILE).open("a", encoding="utf-8") as handle:
            handle.write(f"{stamp}\n")
        self._git("add", TRACKED_FILE)
        self._git("commit", "-m", f"Update {stamp}")
        self._git("gc", "--aggressive")
