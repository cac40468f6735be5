"""Tests for shared error helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from bb_common.errors import (
    BBError,
    NoBatteryError,
    ResultPersistenceError,
    WorkloadError,
    error_to_payload,
)


pytestmark = [pytest.mark.unit, pytest.mark.unit_common]


def test_error_to_payload_normalizes_context() -> None:
    err = WorkloadError(
        "boom",
        context={
            "path": Path("/tmp/scratch"),
            "count": 3,
            "nested": {"value": Path("nested")},
            "tools": ("git", "xcodebuild"),
        },
    )
    payload = error_to_payload(err)
    assert payload["error_type"] == "WorkloadError"
    assert payload["error"] == "boom"
    assert payload["error_context"]["path"].endswith("scratch")
    assert payload["error_context"]["count"] == 3
    assert payload["error_context"]["nested"]["value"] == "nested"
    assert payload["error_context"]["tools"] == ["git", "xcodebuild"]


def test_cause_is_chained() -> None:
    cause = OSError("disk full")
    err = ResultPersistenceError("cannot write", cause=cause)
    assert err.__cause__ is cause


def test_to_dict_and_hierarchy() -> None:
    err = NoBatteryError("no battery")
    assert isinstance(err, BBError)
    assert err.to_dict() == {"type": "NoBatteryError", "message": "no battery", "context": {}}
