from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Sequence

from .dispatch import Dispatcher
from .policy import Policy
from .source import Source
from .state import Event, PlaybackTracker, Snapshot
from .transform import Transformer

log = logging.getLogger("poller")


class Poller:
    """Polls every source on a fixed interval and dispatches what the trackers emit."""

    def __init__(self, sources: Sequence[Source], dispatcher: Dispatcher, policy: Policy,
                 transformer: Transformer | None = None):
        self.sources = list(sources)
        self.dispatcher = dispatcher
        self.policy = policy
        transformer = transformer or Transformer(policy)
        # One tracker per source; sessions are never shared
        self.trackers = [PlaybackTracker(s.name(), transformer, policy) for s in self.sources]

    def _poll(self, source: Source) -> Snapshot | None:
        try:
            snapshot = source.poll()
        except Exception as e:
            log.warning("[%s] poll failed: %s", source.name(), e)
            return None

        if snapshot is not None:
            log.debug("[%s] parsed: playing=%s artists=%s title=%s album=%s elapsed=%s duration=%s",
                      source.name(), snapshot.playing, snapshot.artists, snapshot.track,
                      snapshot.album, snapshot.position, snapshot.duration)
        return snapshot

    def tick(self, now: datetime | None = None) -> list[Event]:
        if now is None:
            now = datetime.now(timezone.utc)

        emitted: list[Event] = []
        for source, tracker in zip(self.sources, self.trackers):
            snapshot = self._poll(source)
            try:
                events = tracker.update(snapshot, now)
            except Exception as e:
                log.warning("[%s] could not track snapshot, treating as nothing playing: %s", source.name(), e)
                events = tracker.update(None, now)
            for event in events:
                self.dispatcher.deliver(event)
                emitted.append(event)
        return emitted

    def run(self):
        if not self.sources:
            log.warning("no sources configured; nothing will be scrobbled")
        if not self.dispatcher.sinks:
            log.warning("no sinks configured; events will be dropped")

        log.info("Polling %d source(s) every %ss: %s", len(self.sources), self.policy.poll_interval,
                 ", ".join(s.name() for s in self.sources) or "-")
        while True:
            self.tick()
            time.sleep(self.policy.poll_interval)
