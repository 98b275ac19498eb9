"""
Simple webhook notifier, plus the fan-out used by the dispatcher.

- Sends a POST with JSON body to the webhook URL.
- Drops alerts below min_level (e.g., WARNING and above).
- Best-effort: failures are logged but do not crash the app.
"""

from __future__ import annotations
import logging
import requests

_LEVELS = {
    "DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40, "CRITICAL": 50
}

log = logging.getLogger("notifier")


def level_value(level: str, default: int = 30) -> int:
    return _LEVELS.get(level.upper(), default)


class Notifier:
    def __init__(self, webhook_url: str | None, min_level: str = "WARNING", app_tag: str = "scrobble-bridge"):
        self.webhook_url = webhook_url.strip() if webhook_url else None
        self.min_level = level_value(min_level)
        self.app_tag = app_tag

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    def send(self, level: str, title: str, message: str, extra: dict | None = None):
        if not self.webhook_url:
            return
        if level_value(level) < self.min_level:
            return

        payload = {
            "level": level.upper(),
            "title": f"{self.app_tag}: {title}",
            "message": message,
            "extra": extra or {},
        }
        try:
            # Most webhooks accept JSON; Slack/Discord-compatible webhooks also work.
            requests.post(self.webhook_url, json=payload, timeout=5)
        except requests.RequestException as e:
            log.debug("Notification send failed: %s", e)


class Alerts:
    """Fans one alert out to every configured notifier."""

    def __init__(self, notifiers=()):
        self.notifiers = [n for n in notifiers if n.enabled]

    def send(self, level: str, title: str, message: str, extra: dict | None = None):
        # Each notifier ignores levels below its own minimum
        for notifier in self.notifiers:
            try:
                notifier.send(level, title, message, extra)
            except Exception as e:
                log.debug("%s failed: %s", type(notifier).__name__, e)
