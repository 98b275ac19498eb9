from __future__ import annotations

from abc import ABC, abstractmethod

from .state import Snapshot


class SourceError(Exception):
    """A source could not be queried this tick."""


class Source(ABC):
    """Something that can report what a media player is currently playing."""

    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def poll(self) -> Snapshot | None:
        """Return the current snapshot, or None when nothing is playing.

        Raises SourceError when the player cannot be reached.
        """
