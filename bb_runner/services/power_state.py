"""Battery telemetry readers.

Readers query the host power-management interface and turn its status line
into a :class:`TelemetrySample`. Parsing lives in :func:`parse_power_status`
so it can be exercised with injected strings, independently of the host.

Failure modes:

* :class:`SampleParseError` - the text is present but missing a percent or a
  state; the caller drops the sample and retries on the next tick.
* :class:`PowerUnavailableError` - the interface returned nothing, which is
  treated as an imminent (or already happened) shutdown.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from datetime import datetime
from typing import Callable, Optional, Protocol

import psutil

from bb_common.errors import PowerUnavailableError, SampleParseError
from bb_runner.models.telemetry import NO_ESTIMATE, PowerState, TelemetrySample


logger = logging.getLogger(__name__)

_PERCENT_RE = re.compile(r"(\d+)%")

Clock = Callable[[], datetime]


def _now() -> datetime:
    return datetime.now().replace(microsecond=0)


def parse_power_status(text: str, timestamp: datetime) -> TelemetrySample:
    """Parse a power status line such as ``85%; discharging; 4:30 remaining``."""
    lines = [line for line in text.splitlines() if "%" in line]
    if not lines:
        # Battery information vanished from the status output.
        raise PowerUnavailableError("Power status is empty", context={"raw": text})

    line = lines[0]
    match = _PERCENT_RE.search(line)
    if match is None:
        raise SampleParseError("Battery percent not found", context={"raw": line})
    percent = int(match.group(1))

    segments = [segment.strip() for segment in line.split(";")]
    state = segments[1] if len(segments) > 1 else ""
    if not state:
        raise SampleParseError("Power state not found", context={"raw": line})

    remaining: Optional[str] = None
    if len(segments) > 2:
        phrase = segments[2]
        if NO_ESTIMATE in phrase:
            remaining = NO_ESTIMATE
        elif phrase:
            remaining = phrase.split()[0]

    return TelemetrySample(
        timestamp=timestamp.replace(microsecond=0),
        percent=percent,
        state=state,
        time_remaining=remaining,
    )


class PowerStateReader(Protocol):
    """Source of battery telemetry."""

    def has_battery(self) -> bool:
        ...

    def read(self) -> TelemetrySample:
        ...


class PmsetPowerStateReader:
    """Reader backed by macOS ``pmset -g batt``."""

    command = ["pmset", "-g", "batt"]

    def __init__(self, clock: Clock = _now, timeout: float = 10.0) -> None:
        self._clock = clock
        self._timeout = timeout

    def _query(self) -> str:
        try:
            result = subprocess.run(
                self.command,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.warning("pmset timed out after %ss", self._timeout)
            raise SampleParseError("pmset timed out") from None
        except OSError as exc:
            logger.debug("pmset could not be executed: %s", exc)
            return ""
        return result.stdout or ""

    def has_battery(self) -> bool:
        return "InternalBattery" in self._query()

    def read(self) -> TelemetrySample:
        return parse_power_status(self._query(), self._clock())


def _format_secsleft(secsleft: int | float | None) -> str:
    if secsleft is None or secsleft in (
        psutil.POWER_TIME_UNKNOWN,
        psutil.POWER_TIME_UNLIMITED,
    ):
        return NO_ESTIMATE
    minutes = int(secsleft) // 60
    return f"{minutes // 60}:{minutes % 60:02d} remaining"


class PsutilPowerStateReader:
    """Reader for hosts without pmset, built on ``psutil.sensors_battery``.

    The battery snapshot is rendered as a pmset-style status line and fed to
    the same parser, so both readers share one set of parsing rules.
    """

    def __init__(self, clock: Clock = _now) -> None:
        self._clock = clock

    def _battery(self):
        sensors_battery = getattr(psutil, "sensors_battery", None)
        if sensors_battery is None:
            return None
        try:
            return sensors_battery()
        except (OSError, RuntimeError) as exc:
            logger.debug("psutil battery query failed: %s", exc)
            return None

    def _status_text(self) -> str:
        battery = self._battery()
        if battery is None:
            return ""
        percent = int(round(battery.percent))
        if battery.power_plugged:
            state = PowerState.CHARGED if percent >= 100 else PowerState.CHARGING
        else:
            state = PowerState.DISCHARGING
        remaining = _format_secsleft(battery.secsleft)
        return f"InternalBattery {percent}%; {state.value}; {remaining}"

    def has_battery(self) -> bool:
        return self._battery() is not None

    def read(self) -> TelemetrySample:
        return parse_power_status(self._status_text(), self._clock())


def create_power_reader(clock: Clock = _now) -> PowerStateReader:
    """Pick the reader matching the host power-management interface."""
    if shutil.which("pmset"):
        return PmsetPowerStateReader(clock=clock)
    logger.debug("pmset not found; using psutil battery sensors")
    return PsutilPowerStateReader(clock=clock)
