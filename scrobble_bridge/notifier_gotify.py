"""
Gotify notifier: POST /message with an app token.

- url: server base URL (e.g., http://nas:8080)
- token: application token; without url and token the notifier is disabled
- default_priority: 1..10, raised for ERROR and CRITICAL alerts
- min_level: alerts below this level are dropped
"""

from __future__ import annotations
import logging
import requests

from .notifier import level_value

# Gotify priorities: errors should break through "do not disturb" clients
_LEVEL_PRIORITY = {"ERROR": 8, "CRITICAL": 10}


class GotifyNotifier:
    def __init__(self, url: str | None, token: str | None, min_level: str = "WARNING", default_priority: int = 5, app_tag: str = "scrobble-bridge"):
        self.url = url.rstrip("/") if url else None
        self.token = token.strip() if token else None
        self.min_level = level_value(min_level)
        self.default_priority = default_priority
        self.app_tag = app_tag

    @property
    def enabled(self) -> bool:
        return bool(self.url and self.token)

    def send(self, level: str, title: str, message: str, extra: dict | None = None, priority: int | None = None):
        if not self.enabled:
            return
        if level_value(level) < self.min_level:
            return

        if priority is None:
            priority = max(self.default_priority, _LEVEL_PRIORITY.get(level.upper(), 0))
        body = {
            "title": f"{self.app_tag}: {title}",
            "message": message if not extra else f"{message}\n\n{extra}",
            "priority": priority,
        }
        headers = {"X-Gotify-Key": self.token}
        try:
            requests.post(f"{self.url}/message", json=body, headers=headers, timeout=5)
        except requests.RequestException as e:
            logging.getLogger("notifier").debug("Gotify send failed: %s", e)
