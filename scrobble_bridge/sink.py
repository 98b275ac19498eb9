from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from .scrobble import Scrobble


class SinkError(Exception):
    """A sink could not record or list scrobbles."""


class Sink(ABC):
    """A destination for now-playing updates and scrobbles."""

    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def now_playing(self, scrobble: Scrobble) -> None: ...

    @abstractmethod
    def scrobble(self, scrobble: Scrobble) -> None: ...

    @abstractmethod
    def get_scrobbles(self, limit: int, from_: datetime, to: datetime) -> list[Scrobble]:
        """Most recent first, timestamps within [from_, to], at most `limit` if positive."""
