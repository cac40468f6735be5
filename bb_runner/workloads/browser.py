"""Browser activity: open developer pages, then keep reloading every tab."""

from __future__ import annotations

import logging
from typing import ClassVar

from bb_runner.workloads.base import LoopTask, run_quiet


logger = logging.getLogger(__name__)

REFRESH_SCRIPT = """
tell application "{app}"
  if (count of windows) > 0 then
    repeat with t in tabs of front window
      try
        set URL of t to (URL of t)
      end try
    end repeat
  end if
end tell
"""


class BrowserRefreshLoop(LoopTask):
    """Reload every tab of the browser's front window every 30 seconds.

    A tab that fails to reload is skipped by the ``try`` block of the script.
    """

    role: ClassVar[str] = "browser"
    tool_names: ClassVar[tuple[str, ...]] = ("open", "osascript")
    interval_seconds: ClassVar[float] = 30.0

    def open_command(self, url: str) -> list[str]:
        return ["open", "-a", self.config.browser_app, url]

    def refresh_command(self) -> list[str]:
        return ["osascript", "-e", REFRESH_SCRIPT.format(app=self.config.browser_app)]

    def setup_worker(self) -> None:
        for url in self.config.bookmark_urls:
            if not run_quiet(self.open_command(url)):
                logger.debug("Could not open %s in %s", url, self.config.browser_app)

    def run_iteration(self) -> None:
        run_quiet(self.refresh_command())
