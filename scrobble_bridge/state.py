from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from .policy import Policy
from .scrobble import Scrobble, TrackIdentity
from .transform import Transformer

log = logging.getLogger("tracker")


# -------------------------
# What a source reports on one poll
# -------------------------
@dataclass(frozen=True)
class Snapshot:
    artists: tuple[str, ...]
    track: str
    album: str
    duration: float | None  # seconds, None when unknown
    position: float | None  # elapsed seconds
    playing: bool

    def identity(self) -> TrackIdentity:
        return TrackIdentity(self.artists, self.track, self.album)


class EventKind(enum.Enum):
    NOW_PLAYING = "now_playing"
    SCROBBLE = "scrobble"


@dataclass(frozen=True)
class Event:
    kind: EventKind
    scrobble: Scrobble


@dataclass
class PlaybackSession:
    identity: TrackIdentity  # as reported by the source, before transforming
    scrobble: Scrobble       # transformed metadata
    track_duration: float | None
    started_at: datetime
    last_tick: datetime
    last_playing: bool = True
    accumulated: float = 0.0
    now_playing_sent: bool = False
    scrobbled: bool = False


class PlaybackTracker:
    """Tracks one source's playback and decides when to announce and scrobble.

    Last.fm guideline: scrobble at halfway or 240s (4min), whichever comes first,
    for tracks longer than 30s. Each session scrobbles at most once; a new
    session starts whenever the reported track changes.
    """

    def __init__(self, name: str, transformer: Transformer, policy: Policy):
        self.name = name
        self.transformer = transformer
        self.policy = policy
        self.session: PlaybackSession | None = None

    def update(self, snapshot: Snapshot | None, now: datetime | None = None) -> list[Event]:
        if now is None:
            now = datetime.now(timezone.utc)

        # Track changed or playback stopped: drop the session, scrobbled or not
        if self.session is not None and (snapshot is None or snapshot.identity() != self.session.identity):
            log.debug("[%s] session ended: %s (%.0fs played, scrobbled=%s)",
                      self.name, self.session.scrobble.track,
                      self.session.accumulated, self.session.scrobbled)
            self.session = None

        if snapshot is None:
            return []

        events: list[Event] = []
        if self.session is None:
            if not snapshot.playing:
                return []
            event = self._start(snapshot, now)
            if event is None:
                return []
            events.append(event)
        else:
            self._advance(snapshot, now)

        event = self._check_threshold()
        if event is not None:
            events.append(event)
        return events

    def _start(self, snapshot: Snapshot, now: datetime) -> Event | None:
        duration = _clamp_duration(snapshot.duration)
        position = _clamp_position(snapshot.position, duration)
        started_at = now - timedelta(seconds=position)

        candidate = Scrobble(
            artists=snapshot.artists,
            track=snapshot.track,
            album=snapshot.album,
            duration=duration or 0.0,
            timestamp=started_at,
        )
        transformed = self.transformer.transform(candidate)
        if transformed is None:
            log.debug("[%s] blacklisted, ignoring: %s - %s",
                      self.name, candidate.join_artists(), candidate.track)
            return None

        self.session = PlaybackSession(
            identity=snapshot.identity(),
            scrobble=transformed,
            track_duration=duration,
            started_at=started_at,
            last_tick=now,
            now_playing_sent=True,
        )
        log.info("[%s] now playing: %s - %s", self.name, transformed.join_artists(), transformed.track)
        return Event(EventKind.NOW_PLAYING, transformed)

    def _advance(self, snapshot: Snapshot, now: datetime) -> None:
        session = self.session
        # Only time between two "playing" ticks counts; paused time is frozen
        if snapshot.playing and session.last_playing:
            delta = (now - session.last_tick).total_seconds()
            session.accumulated += max(0.0, delta)
        session.last_tick = now
        session.last_playing = snapshot.playing

    def _check_threshold(self) -> Event | None:
        session = self.session
        if session is None or session.scrobbled:
            return None
        if session.accumulated < self.policy.threshold(session.track_duration):
            return None

        session.scrobbled = True
        scrobble = Scrobble(
            artists=session.scrobble.artists,
            track=session.scrobble.track,
            album=session.scrobble.album,
            duration=session.accumulated,
            timestamp=session.started_at,
        )
        log.info("[%s] scrobble: %s - %s (%.0fs)",
                 self.name, scrobble.join_artists(), scrobble.track, scrobble.duration)
        return Event(EventKind.SCROBBLE, scrobble)


def _clamp_duration(duration: float | None) -> float | None:
    if duration is None or duration <= 0:
        return None
    return float(duration)


def _clamp_position(position: float | None, duration: float | None) -> float:
    if position is None or position < 0:
        return 0.0
    if duration is not None and position > duration:
        return duration
    return float(position)
