"""Stop token used to funnel every cancellation source into one shutdown."""

from __future__ import annotations

import signal
import threading
from typing import Callable, Dict, Optional


class StopToken:
    """
    Lightweight cooperative stop latch.

    It can be tripped by signals (SIGINT/SIGTERM), by the telemetry logger
    (target reached, power status gone) or directly by callers. The first
    request wins and records its reason; later requests are no-ops, so a
    second Ctrl+C during teardown does nothing.
    """

    def __init__(
        self,
        enable_signals: bool = True,
        on_stop: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._on_stop = on_stop
        self._event = threading.Event()
        # Re-entrant: a signal handler may fire while the main thread holds it.
        self._lock = threading.RLock()
        self._reason: Optional[str] = None
        self._prev_handlers: Dict[int, Callable] = {}
        if enable_signals:
            self._install_signal_handlers()

    def _install_signal_handlers(self) -> None:
        """Capture SIGINT/SIGTERM and mark the token as stopped."""
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                self._prev_handlers[sig] = signal.getsignal(sig)
                signal.signal(sig, self._handle_signal)  # type: ignore[arg-type]
            except (ValueError, OSError):
                # Not the main thread; run without signal handling.
                continue

    def _handle_signal(self, signum: int, frame) -> None:  # type: ignore[override]
        self.request_stop("interrupted")

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def request_stop(self, reason: str = "interrupted") -> bool:
        """Trip the token. Returns False when it was already tripped."""
        with self._lock:
            if self._event.is_set():
                return False
            self._reason = reason
            self._event.set()
        if self._on_stop:
            try:
                self._on_stop(reason)
            except Exception:
                pass
        return True

    def should_stop(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the token trips or the timeout expires."""
        return self._event.wait(timeout)

    def restore(self) -> None:
        """Restore original signal handlers."""
        for sig, handler in self._prev_handlers.items():
            try:
                signal.signal(sig, handler)  # type: ignore[arg-type]
            except (ValueError, OSError):
                continue
        self._prev_handlers.clear()

    def __enter__(self) -> "StopToken":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore()
