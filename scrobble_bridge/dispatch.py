from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from .sink import Sink
from .state import Event, EventKind

log = logging.getLogger("dispatch")


@dataclass(frozen=True)
class DeliveryResult:
    sink: str
    ok: bool
    error: Exception | None = None


class Dispatcher:
    """Delivers each event to every sink; one sink failing never affects the others.

    There is no retry: an event a sink failed to take is lost for that sink.
    """

    def __init__(self, sinks: Sequence[Sink], alerts=None,
                 notify_on_scrobble: bool = False, notify_on_error: bool = True):
        self.sinks = list(sinks)
        self.alerts = alerts
        self.notify_on_scrobble = notify_on_scrobble
        self.notify_on_error = notify_on_error

    def deliver(self, event: Event) -> list[DeliveryResult]:
        return [self._deliver_one(sink, event) for sink in self.sinks]

    def _deliver_one(self, sink: Sink, event: Event) -> DeliveryResult:
        s = event.scrobble
        name = sink.name()
        try:
            if event.kind is EventKind.NOW_PLAYING:
                sink.now_playing(s)
            else:
                sink.scrobble(s)
        except Exception as e:
            if event.kind is EventKind.NOW_PLAYING:
                # Now playing is transient; losing one isn't worth an alert
                log.warning("[%s] now playing update failed: %s", name, e)
            else:
                log.error("[%s] scrobble failed: %s - %s: %s", name, s.join_artists(), s.track, e)
                if self.notify_on_error:
                    self._alert("ERROR", f"Scrobble to {name} failed",
                                f"{s.join_artists()} - {s.track}: {e}")
            return DeliveryResult(name, False, e)

        if event.kind is EventKind.SCROBBLE:
            log.info("[%s] scrobbled: %s - %s%s", name, s.join_artists(), s.track,
                     f" [{s.album}]" if s.album else "")
            if self.notify_on_scrobble:
                self._alert("INFO", f"Scrobbled to {name}", f"{s.join_artists()} - {s.track}")
        else:
            log.debug("[%s] now playing updated: %s - %s", name, s.join_artists(), s.track)
        return DeliveryResult(name, True)

    def _alert(self, level: str, title: str, message: str):
        if self.alerts is None:
            return
        try:
            self.alerts.send(level, title, message)
        except Exception as e:
            log.debug("alert failed: %s", e)
