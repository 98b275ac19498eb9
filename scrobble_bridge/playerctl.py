"""
Linux MPRIS source via playerctl.

Works with any MPRIS-compatible player (Spotify, VLC, Firefox, Rhythmbox...).
Requires playerctl on PATH: sudo apt install playerctl
"""

from __future__ import annotations

import logging
import subprocess

from .source import Source, SourceError
from .state import Snapshot

log = logging.getLogger("playerctl")

# Fields: artist, title, album, position (µs), length (µs)
METADATA_FORMAT = "{{artist}}\t{{title}}\t{{album}}\t{{position}}\t{{mpris:length}}"


class PlayerctlSource(Source):
    def __init__(self, player: str | None = None, timeout: float = 2):
        self.player = player
        self.timeout = timeout

    def name(self) -> str:
        return f"playerctl:{self.player}" if self.player else "playerctl"

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        cmd = ["playerctl"]
        if self.player:
            cmd += ["-p", self.player]
        cmd += list(args)
        try:
            return subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise SourceError("playerctl not installed") from e
        except subprocess.TimeoutExpired as e:
            raise SourceError(f"playerctl {args[0]} timed out") from e

    def poll(self) -> Snapshot | None:
        status_result = self._run("status")
        if status_result.returncode != 0:
            if "No players found" in status_result.stderr:
                return None
            raise SourceError(f"playerctl status failed: {status_result.stderr.strip()}")

        status = status_result.stdout.strip().lower()
        if status not in ("playing", "paused"):
            return None

        metadata_result = self._run("metadata", "--format", METADATA_FORMAT)
        if metadata_result.returncode != 0:
            raise SourceError(f"playerctl metadata failed: {metadata_result.stderr.strip()}")

        parts = metadata_result.stdout.rstrip("\n").split("\t")
        parts += [""] * (5 - len(parts))
        artist, title, album, position, length = parts[:5]
        if not artist or not title:
            log.debug("playerctl reported no artist/title; skipping")
            return None

        return Snapshot(
            artists=(artist,),
            track=title,
            album=album,
            duration=_micros(length),
            position=_micros(position),
            playing=status == "playing",
        )


def _micros(value: str) -> float | None:
    if not value:
        return None
    try:
        return int(value) / 1_000_000
    except ValueError:
        return None
