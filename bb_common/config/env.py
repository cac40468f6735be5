"""Environment variable parsing utilities."""

from __future__ import annotations

import logging


def parse_bool_env(value: str | None) -> bool | None:
    """Parse a boolean from an environment variable string.

    Returns True for "1", "true", "yes", "on" (case-insensitive).
    Returns None if value is None.
    """
    if value is None:
        return None
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_int_env(value: str | None) -> int | None:
    """Parse an integer from an environment variable string.

    Returns None if value is None or cannot be parsed.
    """
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_level_env(value: str | int | None, default: int = logging.INFO) -> int:
    """Resolve a logging level from a name ("debug") or a number ("10")."""
    if value is None:
        return default
    if isinstance(value, int):
        return value
    numeric = parse_int_env(value)
    if numeric is not None:
        return numeric
    return logging.getLevelNamesMapping().get(value.strip().upper(), default)
