"""Shared helpers for battery-bench."""

from bb_common.api import BBError, configure_logging

__all__ = ["BBError", "configure_logging"]
