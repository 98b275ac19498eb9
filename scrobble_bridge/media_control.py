"""
Source that shells out to a command printing the now-playing item as JSON.

Defaults match media-control (https://github.com/ungive/media-control) on macOS:
`media-control get --now` prints `null` when idle, otherwise an object with
title, artist, album, duration, elapsedTime(Now) and playing.
"""

from __future__ import annotations

import json
import subprocess

from .source import Source, SourceError
from .state import Snapshot

DEFAULT_ARGUMENTS = ("get", "--now")


class MediaControlSource(Source):
    def __init__(self, command: str = "media-control", arguments=DEFAULT_ARGUMENTS, timeout: float = 5):
        self.command = command
        self.arguments = list(arguments) or list(DEFAULT_ARGUMENTS)
        self.timeout = timeout

    def name(self) -> str:
        return "media-control"

    def poll(self) -> Snapshot | None:
        try:
            result = subprocess.run([self.command, *self.arguments],
                                    capture_output=True, text=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise SourceError(f"{self.command} not installed") from e
        except subprocess.TimeoutExpired as e:
            raise SourceError(f"{self.command} timed out") from e

        if result.returncode != 0:
            raise SourceError(f"{self.command} exited with {result.returncode}: {result.stderr.strip()}")

        output = result.stdout.strip()
        if not output:
            return None
        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            raise SourceError(f"{self.command} printed invalid JSON: {e}") from e
        if not isinstance(data, dict):
            return None

        title = data.get("title")
        artist = data.get("artist")
        if not (isinstance(title, str) and title and isinstance(artist, str) and artist):
            return None
        album = data.get("album")

        elapsed = data.get("elapsedTimeNow", data.get("elapsedTime"))
        return Snapshot(
            artists=(artist,),
            track=title,
            album=album if isinstance(album, str) else "",
            duration=_to_float(data.get("duration")),
            position=_to_float(elapsed),
            playing=bool(data.get("playing")),
        )


def _to_float(value) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
