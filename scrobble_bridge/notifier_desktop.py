"""
Desktop notifications: notify-send on Linux, terminal-notifier on macOS.
"""

from __future__ import annotations

import logging
import subprocess
import sys

from .notifier import level_value

log = logging.getLogger("notifier")


class DesktopNotifier:
    def __init__(self, enabled: bool = False, min_level: str = "INFO", app_tag: str = "scrobble-bridge"):
        self._enabled = enabled
        self.min_level = level_value(min_level)
        self.app_tag = app_tag

    @property
    def enabled(self) -> bool:
        return self._enabled

    def command(self, title: str, message: str) -> list[str]:
        if sys.platform == "darwin":
            # https://github.com/julienXX/terminal-notifier
            return ["terminal-notifier", "-title", self.app_tag, "-subtitle", title, "-message", message]
        return ["notify-send", "--app-name", self.app_tag, title, message]

    def send(self, level: str, title: str, message: str, extra: dict | None = None):
        if not self._enabled or level_value(level) < self.min_level:
            return
        cmd = self.command(title, message)
        log.debug("sending desktop notification via %s", cmd[0])
        try:
            result = subprocess.run(cmd, capture_output=True, timeout=5)
        except (OSError, subprocess.TimeoutExpired) as e:
            log.debug("desktop notification failed: %s", e)
            return
        if result.returncode != 0:
            log.debug("%s exited with %s", cmd[0], result.returncode)
