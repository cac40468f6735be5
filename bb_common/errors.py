"""Shared error taxonomy for battery-bench."""

from __future__ import annotations

from typing import Any, Mapping


def _normalize_context_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return normalize_context(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_context_value(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def normalize_context(context: Mapping[str, Any]) -> dict[str, Any]:
    """Return a JSON-friendly copy of an error context mapping."""
    return {key: _normalize_context_value(val) for key, val in context.items()}


class BBError(Exception):
    """Base error type for typed failure handling."""

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.context = normalize_context(context or {})
        if cause is not None:
            self.__cause__ = cause

    @property
    def error_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.error_type, "message": str(self), "context": self.context}


class ConfigurationError(BBError):
    """Invalid run configuration; raised before any side effect."""


class NoBatteryError(BBError):
    """The host reports no internal battery; the run cannot start."""


class SampleParseError(BBError):
    """A power status reading was present but could not be parsed.

    The sample is dropped and the next tick retries.
    """


class PowerUnavailableError(BBError):
    """The power status interface returned nothing (shutdown imminent)."""


class WorkloadError(BBError):
    """Failure while preparing or starting a workload task."""


class ResultPersistenceError(BBError):
    """Failure persisting the telemetry log."""


def error_to_payload(error: BBError) -> dict[str, Any]:
    """Convert a BBError to a structured logging payload."""
    return {
        "error_type": error.error_type,
        "error": str(error),
        "error_context": error.context,
    }
