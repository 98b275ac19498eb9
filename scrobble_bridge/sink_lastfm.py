from __future__ import annotations

import logging
from datetime import datetime, timezone

import pylast

from .scrobble import Scrobble
from .sink import Sink, SinkError

log = logging.getLogger("lastfm")

# Last.fm refuses scrobbles of tracks shorter than 30s
MIN_DURATION = 30


# Custom error classes so callers can branch
class LastFMAuthError(SinkError): ...
class LastFMRateLimitError(SinkError): ...
class LastFMNetworkError(SinkError): ...
class LastFMUnknownError(SinkError): ...


def _map_error(e: Exception) -> SinkError:
    if isinstance(e, pylast.WSError):
        code = getattr(e, "status", None)
        code = int(code) if code is not None and str(code).isdigit() else None
        msg = str(e)
        # Map common Last.fm error codes
        if code in (9, 4, 14):  # 9=Invalid session, 4=Auth failed, 14=Token expired
            return LastFMAuthError(msg)
        elif code in (29,):  # 29=Rate limit exceeded
            return LastFMRateLimitError(msg)
        return LastFMUnknownError(f"Last.fm API error {code}: {msg}")
    return LastFMNetworkError(str(e))


class LastFMSink(Sink):
    """Thin wrapper over pylast for update-now-playing, scrobbling and history."""

    def __init__(self, api_key: str, api_secret: str, session_key: str | None = None,
                 username: str | None = None, password_md5: str | None = None):
        self.username = username
        if session_key:
            log.info("Using Last.fm session key auth")
            self.network = pylast.LastFMNetwork(
                api_key=api_key,
                api_secret=api_secret,
                session_key=session_key,
                username=username or "",
            )
        elif username and password_md5:
            log.info("Using Last.fm username + MD5 password auth")
            self.network = pylast.LastFMNetwork(
                api_key=api_key,
                api_secret=api_secret,
                username=username,
                password_hash=password_md5,
            )
        else:
            raise ValueError("Missing Last.fm credentials")

    def name(self) -> str:
        return "last.fm"

    def now_playing(self, scrobble: Scrobble) -> None:
        try:
            self.network.update_now_playing(
                artist=scrobble.join_artists(),
                title=scrobble.track,
                album=scrobble.album or None,
                duration=max(int(scrobble.duration), MIN_DURATION),
            )
        except Exception as e:
            raise _map_error(e) from e

    def scrobble(self, scrobble: Scrobble) -> None:
        """Submit a scrobble with its start timestamp (unix seconds)."""
        try:
            self.network.scrobble(
                artist=scrobble.join_artists(),
                title=scrobble.track,
                album=scrobble.album or None,
                duration=max(int(scrobble.duration), MIN_DURATION),
                timestamp=int(scrobble.timestamp.timestamp()),
            )
        except Exception as e:
            raise _map_error(e) from e

    def get_scrobbles(self, limit: int, from_: datetime, to: datetime) -> list[Scrobble]:
        if not self.username:
            raise SinkError("Last.fm history needs LASTFM_USERNAME")

        log.debug("loading scrobbles from last.fm API")
        user = self.network.get_user(self.username)
        scrobbles: list[Scrobble] = []
        try:
            # stream=True makes pylast fetch pages lazily until we stop or they run out
            played = user.get_recent_tracks(
                limit=limit if limit > 0 else None,
                time_from=int(from_.timestamp()),
                time_to=int(to.timestamp()),
                stream=True,
            )
            for item in played:
                timestamp = datetime.fromtimestamp(int(item.timestamp), tz=timezone.utc)
                if timestamp < from_ or timestamp > to:
                    continue
                scrobbles.append(Scrobble(
                    # Lossy: an artist named "Tyler, The Creator" gets split
                    artists=tuple(str(item.track.artist).split(", ")),
                    track=item.track.title,
                    album=item.album or "",
                    duration=0.0,
                    timestamp=timestamp,
                ))
                if 0 < limit <= len(scrobbles):
                    break
        except Exception as e:
            raise _map_error(e) from e
        return scrobbles
