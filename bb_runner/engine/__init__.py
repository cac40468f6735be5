"""Run orchestration: telemetry sampling, task supervision, run control."""
