"""CPU workload: compress pseudorandom blocks, sized by workload mode."""

from __future__ import annotations

import gzip
import os
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import ClassVar, Optional

from bb_runner.models.config import RunConfig, WorkloadMode
from bb_runner.workloads.base import LoopTask


MB = 1024 * 1024


@dataclass(frozen=True)
class CpuProfile:
    block_bytes: int
    parallel_jobs: int = 1
    pause_seconds: float = 0.0


CPU_PROFILES: dict[WorkloadMode, CpuProfile] = {
    # Small bursts with long idle gaps (reading, light browsing).
    WorkloadMode.LIGHT: CpuProfile(block_bytes=10 * MB, pause_seconds=30.0),
    WorkloadMode.MEDIUM: CpuProfile(block_bytes=50 * MB),
    # Fixed at two jobs regardless of core count.
    WorkloadMode.HEAVY: CpuProfile(block_bytes=100 * MB, parallel_jobs=2),
}


def compress_random_block(size_bytes: int) -> int:
    """Compress ``size_bytes`` of random data; returns the compressed size."""
    return len(gzip.compress(os.urandom(size_bytes)))


class CpuStressLoop(LoopTask):
    role: ClassVar[str] = "cpu"

    def __init__(self, config: RunConfig, profile: Optional[CpuProfile] = None):
        super().__init__(config)
        self.profile = profile or CPU_PROFILES[config.mode]
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def name(self) -> str:
        return f"CpuStressLoop[{self.config.mode.value}]"

    @property
    def interval_seconds(self) -> float:  # type: ignore[override]
        return self.profile.pause_seconds

    def setup_worker(self) -> None:
        if self.profile.parallel_jobs > 1:
            # gzip releases the GIL while compressing, so threads run in parallel.
            self._executor = ThreadPoolExecutor(
                max_workers=self.profile.parallel_jobs,
                thread_name_prefix="cpu-stress",
            )

    def run_iteration(self) -> None:
        if self._executor is None:
            compress_random_block(self.profile.block_bytes)
            return
        futures = [
            self._executor.submit(compress_random_block, self.profile.block_bytes)
            for _ in range(self.profile.parallel_jobs)
        ]
        wait(futures)
        for future in futures:
            future.result()
