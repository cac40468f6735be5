"""Host-facing services: power readers, system info, telemetry log, summary."""
