"""
Local scrobble history as a flat CSV table.

- One scrobble per row: artists, track, album, duration, timestamp.
- Every scrobble rewrites the whole file atomically (tmp file + os.replace).
- A malformed row is an error, never skipped.
"""

from __future__ import annotations

import csv
import logging
import os
from datetime import datetime
from typing import List

from .scrobble import Scrobble
from .sink import Sink, SinkError

log = logging.getLogger("file-sink")


class FileSink(Sink):
    def __init__(self, path: str):
        self.path = path

    def name(self) -> str:
        return "file"

    # -------- persistence --------
    def _load(self) -> List[Scrobble]:
        with open(self.path, "r", encoding="utf-8", newline="") as f:
            return [Scrobble.from_row(row) for row in csv.reader(f)]

    def _save(self, scrobbles: List[Scrobble]) -> None:
        # Write atomically to avoid corruption
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp = f"{self.path}.tmp"
        with open(tmp, "w", encoding="utf-8", newline="") as f:
            csv.writer(f).writerows(s.to_row() for s in scrobbles)
        os.replace(tmp, self.path)

    # -------- sink API --------
    def now_playing(self, scrobble: Scrobble) -> None:
        return None

    def scrobble(self, scrobble: Scrobble) -> None:
        try:
            scrobbles = self._load()
        except FileNotFoundError:
            scrobbles = []
        scrobbles.append(scrobble)
        self._save(scrobbles)
        log.debug("wrote scrobble to %s (%d rows)", self.path, len(scrobbles))

    def get_scrobbles(self, limit: int, from_: datetime, to: datetime) -> List[Scrobble]:
        log.debug("reading scrobbles from %s", self.path)
        try:
            scrobbles = self._load()
        except OSError as e:
            raise SinkError(f"cannot read {self.path}: {e}") from e

        result = []
        for s in reversed(scrobbles):
            if s.timestamp < from_ or s.timestamp > to:
                continue
            if 0 < limit <= len(result):
                break
            result.append(s)
        return result
