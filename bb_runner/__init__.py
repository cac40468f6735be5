"""Battery benchmark runner: workload tasks, telemetry sampling, summaries."""
