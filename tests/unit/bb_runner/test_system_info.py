"""Tests for host system information collection."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from bb_runner.services import system_info
from bb_runner.services.system_info import SystemInfoCollector, _format_bytes, _parse_key_values
from bb_runner.services.system_info_types import SystemInfo


pytestmark = [pytest.mark.unit, pytest.mark.unit_runner]

SP_HARDWARE = """Hardware:

    Hardware Overview:

      Model Name: MacBook Pro
      Model Identifier: Mac15,6
      Chip: Apple M3 Pro
      Total Number of Cores: 12 (6 performance and 6 efficiency)
      Memory: 36 GB
"""


def test_parse_key_values_keeps_first_occurrence() -> None:
    values = _parse_key_values("Chip: M1\nChip: M2\nno separator\nEmpty:\n")
    assert values == {"Chip": "M1"}


@pytest.mark.parametrize(
    ("size", "expected"),
    [(512, "512B"), (1536, "1.5K"), (16 * 1024**3, "16G"), (2 * 1024**4, "2.0T")],
)
def test_format_bytes(size, expected) -> None:
    assert _format_bytes(size) == expected


def test_collect_macos(monkeypatch) -> None:
    answers = {
        "system_profiler": SP_HARDWARE,
        "-productName": "macOS\n",
        "-productVersion": "14.5\n",
        "-buildVersion": "23F79\n",
    }

    def fake_run(cmd, timeout=30.0):
        return answers[cmd[0] if cmd[0] == "system_profiler" else cmd[1]]

    monkeypatch.setattr(system_info.platform, "system", lambda: "Darwin")
    monkeypatch.setattr(system_info, "_run", fake_run)
    monkeypatch.setattr(system_info.psutil, "disk_usage", lambda path: SimpleNamespace(total=500 * 1024**3))

    info = SystemInfoCollector().collect()

    assert info.model_name == "MacBook Pro"
    assert info.model_id == "Mac15,6"
    assert info.chip == "Apple M3 Pro"
    assert info.memory == "36 GB"
    assert info.os_full == "macOS 14.5 (23F79)"
    assert info.disk_size == "500G"


def test_collect_macos_falls_back_to_processor_name(monkeypatch) -> None:
    monkeypatch.setattr(system_info.platform, "system", lambda: "Darwin")
    monkeypatch.setattr(
        system_info,
        "_run",
        lambda cmd, timeout=30.0: "Processor Name: Quad-Core Intel Core i7\n" if cmd[0] == "system_profiler" else "",
    )
    info = SystemInfoCollector().collect()
    assert info.chip == "Quad-Core Intel Core i7"
    assert info.model_name == "Unknown"
    assert info.os_name == "macOS"


def test_collect_generic_uses_os_release(monkeypatch) -> None:
    monkeypatch.setattr(system_info.platform, "system", lambda: "Linux")
    monkeypatch.setattr(
        system_info,
        "_read_os_release",
        lambda path=None: {"NAME": "Fedora Linux", "VERSION_ID": "40"},
    )
    monkeypatch.setattr(system_info, "_read_text", lambda path: "ThinkPad X1")
    info = SystemInfoCollector().collect()
    assert info.model_name == "ThinkPad X1"
    assert info.os_name == "Fedora Linux"
    assert info.os_version == "40"
    assert info.cores != ""


def test_header_lines_and_dict() -> None:
    info = SystemInfo(model_name="MacBook Air", model_id="Mac14,2", os_name="macOS", os_version="14.0")
    lines = info.header_lines()
    assert lines[0] == "System Information:"
    assert "Model:   MacBook Air (Mac14,2)" in lines
    assert info.to_dict()["os_full"] == "macOS 14.0"
