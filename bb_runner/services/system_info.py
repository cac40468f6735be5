"""System information collection utilities.

Collects the static host facts (model, chip, cores, memory, OS, disk) shown
in the log header and the final summary. On macOS the values come from
``system_profiler`` and ``sw_vers``; elsewhere from ``platform``,
``/etc/os-release`` and psutil. Every query is best effort: a missing tool or
an unparsable answer leaves the field as ``Unknown``.
"""

from __future__ import annotations

import logging
import platform
import subprocess
from pathlib import Path

import psutil

from bb_runner.services.system_info_types import UNKNOWN, SystemInfo


logger = logging.getLogger(__name__)


def _run(cmd: list[str], timeout: float = 30.0) -> str:
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            timeout=timeout,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.debug("System query %s failed: %s", cmd[0], exc)
        return ""
    return result.stdout or ""


def _parse_key_values(output: str) -> dict[str, str]:
    """Parse ``Key: Value`` lines, keeping the first occurrence of each key."""
    values: dict[str, str] = {}
    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        value = value.strip()
        if key and value and key not in values:
            values[key] = value
    return values


def _read_os_release(path: Path = Path("/etc/os-release")) -> dict[str, str]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    data: dict[str, str] = {}
    for line in content.splitlines():
        key, sep, value = line.partition("=")
        if sep:
            data[key.strip()] = value.strip().strip('"')
    return data


def _format_bytes(num_bytes: int | float) -> str:
    """Human-readable size in the style of ``df -h`` (e.g. ``494G``)."""
    value = float(num_bytes)
    for unit in ("B", "K", "M", "G", "T"):
        if value < 1024 or unit == "T":
            return f"{value:.0f}{unit}" if value >= 10 or unit == "B" else f"{value:.1f}{unit}"
        value /= 1024
    return f"{value:.0f}T"


class SystemInfoCollector:
    """Collect a :class:`SystemInfo` snapshot once at startup."""

    def collect(self) -> SystemInfo:
        if platform.system() == "Darwin":
            info = self._collect_macos()
        else:
            info = self._collect_generic()
        info.disk_size = self._disk_size()
        logger.debug("Collected system info: %s", info.to_dict())
        return info

    def _collect_macos(self) -> SystemInfo:
        hardware = _parse_key_values(_run(["system_profiler", "SPHardwareDataType"]))
        chip = hardware.get("Chip") or hardware.get("Processor Name") or UNKNOWN
        return SystemInfo(
            model_name=hardware.get("Model Name", UNKNOWN),
            model_id=hardware.get("Model Identifier", UNKNOWN),
            chip=chip,
            cores=hardware.get("Total Number of Cores", UNKNOWN),
            memory=hardware.get("Memory", UNKNOWN),
            os_name=_run(["sw_vers", "-productName"]).strip() or "macOS",
            os_version=_run(["sw_vers", "-productVersion"]).strip(),
            os_build=_run(["sw_vers", "-buildVersion"]).strip(),
        )

    def _collect_generic(self) -> SystemInfo:
        uname = platform.uname()
        os_release = _read_os_release()
        product = _read_text(Path("/sys/devices/virtual/dmi/id/product_name"))
        cores = psutil.cpu_count(logical=False) or psutil.cpu_count()
        return SystemInfo(
            model_name=product or uname.node or UNKNOWN,
            model_id=uname.machine or UNKNOWN,
            chip=uname.processor or uname.machine or UNKNOWN,
            cores=str(cores) if cores else UNKNOWN,
            memory=_format_bytes(psutil.virtual_memory().total),
            os_name=os_release.get("NAME") or uname.system or UNKNOWN,
            os_version=os_release.get("VERSION_ID") or uname.release,
            os_build=uname.release if os_release else "",
        )

    def _disk_size(self) -> str:
        try:
            return _format_bytes(psutil.disk_usage("/").total)
        except OSError as exc:
            logger.debug("Disk size query failed: %s", exc)
            return UNKNOWN


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError:
        return ""
