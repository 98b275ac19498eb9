"""Scrobble what your media players are playing to Last.fm and local files."""

__version__ = "0.1.0"
