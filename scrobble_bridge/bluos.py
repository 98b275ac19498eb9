import xml.etree.ElementTree as ET

import requests

from .source import Source, SourceError
from .state import Snapshot

PLAYING_STATES = ("play", "stream")
PAUSED_STATES = ("pause",)


class BluOSSource(Source):
    """
    BluOS player source that fetches and parses /Status (XML).
    Uses recursive lookup + tag fallbacks: name/title1, artist, album, secs, totlen, state.
    """
    def __init__(self, host: str, port: int = 11000, timeout: int = 5):
        self.base = f"http://{host}:{port}"
        self.timeout = timeout

    def name(self) -> str:
        return "bluos"

    def _findtext_any(self, root: ET.Element, *tags: str):
        for t in tags:
            el = root.find(f".//{t}")
            if el is not None and el.text:
                return el.text.strip()
        return None

    def _to_float(self, s):
        if s is None: return None
        try:
            return float(s)
        except ValueError:
            return None

    def poll(self) -> Snapshot | None:
        try:
            resp = requests.get(f"{self.base}/Status", timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise SourceError(f"BluOS status fetch failed: {e}") from e

        try:
            root = ET.fromstring(resp.text)
        except ET.ParseError as e:
            raise SourceError(f"BluOS status is not valid XML: {e}") from e

        # title appears as <name> and also as <title1>; fallbacks included
        title  = self._findtext_any(root, "name", "title1", "title", "song")
        artist = self._findtext_any(root, "artist", "title2")
        album  = self._findtext_any(root, "album", "title3")

        secs     = self._findtext_any(root, "secs", "elapsed", "position", "time")
        duration = self._findtext_any(root, "totlen", "duration", "total", "trackLength", "length")

        state = self._findtext_any(root, "state", "status", "mode")
        state = state.lower() if state else None

        if state not in PLAYING_STATES + PAUSED_STATES or not artist or not title:
            return None

        return Snapshot(
            artists=(artist,),
            track=title,
            album=album or "",
            duration=self._to_float(duration),
            position=self._to_float(secs),
            playing=state in PLAYING_STATES,
        )
