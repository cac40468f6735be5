"""Dataclasses describing the host identity reported in log headers."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


UNKNOWN = "Unknown"


@dataclass
class SystemInfo:
    model_name: str = UNKNOWN
    model_id: str = UNKNOWN
    chip: str = UNKNOWN
    cores: str = UNKNOWN
    memory: str = UNKNOWN
    os_name: str = UNKNOWN
    os_version: str = ""
    os_build: str = ""
    disk_size: str = UNKNOWN

    @property
    def os_full(self) -> str:
        """Return e.g. ``macOS 15.1 (24B83)``."""
        text = " ".join(part for part in (self.os_name, self.os_version) if part)
        if self.os_build:
            text = f"{text} ({self.os_build})"
        return text

    def header_lines(self) -> list[str]:
        """Render the system block of the telemetry log header."""
        return [
            "System Information:",
            f"Model:   {self.model_name} ({self.model_id})",
            f"OS:      {self.os_full}",
            f"Chip:    {self.chip}",
            f"Cores:   {self.cores}",
            f"RAM:     {self.memory}",
            f"Disk:    {self.disk_size} (System Volume)",
        ]

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["os_full"] = self.os_full
        return data
