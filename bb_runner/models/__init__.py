"""Configuration and telemetry models for the battery runner."""
