"""Worker process entry point running one loop task until it is killed."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from bb_common.logging import configure_logging
from bb_runner.models.config import RunConfig
from bb_runner.workloads.registry import LOOP_TASKS, create_loop_task


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run a battery-bench workload loop.")
    parser.add_argument("role", choices=sorted(LOOP_TASKS))
    parser.add_argument("--config", required=True, help="RunConfig as JSON")
    parser.add_argument("--scratch-dir", type=Path, help="Scratch repository for the disk loop")
    parser.add_argument("--iterations", type=int, default=None, help=argparse.SUPPRESS)
    args = parser.parse_args(argv)

    configure_logging(level=logging.WARNING)
    config = RunConfig.from_json(args.config)
    task = create_loop_task(args.role, config, scratch_dir=args.scratch_dir)
    task.run_loop(max_iterations=args.iterations)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
