from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime

FIELD_COUNT = 5


class ScrobbleDecodeError(ValueError):
    """A stored scrobble row could not be parsed."""


@dataclass(frozen=True)
class TrackIdentity:
    artists: tuple[str, ...]
    track: str
    album: str


@dataclass(frozen=True)
class Scrobble:
    """One play of a track: who, what, how long and when it started."""

    artists: tuple[str, ...]
    track: str
    album: str
    duration: float     # seconds
    timestamp: datetime  # when the play began (tz-aware)

    def identity(self) -> TrackIdentity:
        return TrackIdentity(self.artists, self.track, self.album)

    def same_track(self, other: "Scrobble") -> bool:
        return self.identity() == other.identity()

    def join_artists(self) -> str:
        return ", ".join(self.artists)

    def pretty_duration(self) -> str:
        total = int(self.duration)
        return f"{total // 60}:{total % 60:02d}"

    # -------- line encoding --------
    def to_row(self) -> list[str]:
        return [
            # JSON array, so any artist name (empty, commas, control chars) round-trips
            json.dumps(list(self.artists), ensure_ascii=False),
            self.track,
            self.album,
            repr(float(self.duration)),
            self.timestamp.isoformat(),
        ]

    @classmethod
    def from_row(cls, row: list[str]) -> "Scrobble":
        if len(row) != FIELD_COUNT:
            raise ScrobbleDecodeError(f"expected {FIELD_COUNT} fields, got {len(row)}: {row!r}")

        artists, track, album, duration, timestamp = row
        try:
            names = json.loads(artists)
        except json.JSONDecodeError:
            raise ScrobbleDecodeError(f"invalid artists {artists!r}") from None
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise ScrobbleDecodeError(f"artists must be a JSON array of strings: {artists!r}")
        try:
            duration_s = float(duration)
        except ValueError:
            raise ScrobbleDecodeError(f"invalid duration {duration!r}") from None
        try:
            ts = datetime.fromisoformat(timestamp)
        except ValueError:
            raise ScrobbleDecodeError(f"invalid timestamp {timestamp!r}") from None
        if ts.tzinfo is None:
            raise ScrobbleDecodeError(f"timestamp without UTC offset {timestamp!r}")

        return cls(
            artists=tuple(names),
            track=track,
            album=album,
            duration=duration_s,
            timestamp=ts,
        )
