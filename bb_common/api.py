"""Public API surface for bb_common."""

from bb_common.errors import (
    BBError,
    ConfigurationError,
    NoBatteryError,
    PowerUnavailableError,
    ResultPersistenceError,
    SampleParseError,
    WorkloadError,
    error_to_payload,
)
from bb_common.logging import configure_logging

__all__ = [
    "BBError",
    "ConfigurationError",
    "NoBatteryError",
    "PowerUnavailableError",
    "ResultPersistenceError",
    "SampleParseError",
    "WorkloadError",
    "configure_logging",
    "error_to_payload",
]
