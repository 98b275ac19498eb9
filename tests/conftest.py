"""Pytest configuration and shared fixtures"""
from datetime import datetime, timedelta, timezone

import pytest

from scrobble_bridge.policy import Policy
from scrobble_bridge.scrobble import Scrobble
from scrobble_bridge.sink import Sink
from scrobble_bridge.source import Source
from scrobble_bridge.state import Snapshot

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeSink(Sink):
    """Records every call; raises when told to."""

    def __init__(self, name="fake", fail_now_playing=False, fail_scrobble=False):
        self._name = name
        self.fail_now_playing = fail_now_playing
        self.fail_scrobble = fail_scrobble
        self.now_playing_calls = []
        self.scrobble_calls = []

    def name(self):
        return self._name

    def now_playing(self, scrobble):
        self.now_playing_calls.append(scrobble)
        if self.fail_now_playing:
            raise RuntimeError("now playing boom")

    def scrobble(self, scrobble):
        self.scrobble_calls.append(scrobble)
        if self.fail_scrobble:
            raise RuntimeError("scrobble boom")

    def get_scrobbles(self, limit, from_, to):
        return list(reversed(self.scrobble_calls))


class FakeSource(Source):
    """Plays back a scripted list of snapshots (or exceptions), one per poll."""

    def __init__(self, name, script):
        self._name = name
        self.script = list(script)
        self.polls = 0

    def name(self):
        return self._name

    def poll(self):
        item = self.script[min(self.polls, len(self.script) - 1)]
        self.polls += 1
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def policy():
    return Policy(poll_interval=2, min_playback_duration=240, min_playback_percent=50)


@pytest.fixture
def make_snapshot():
    def _make(track="Imagine", artists=("John Lennon",), album="Imagine",
              duration=400.0, position=0.0, playing=True):
        return Snapshot(artists=tuple(artists), track=track, album=album,
                        duration=duration, position=position, playing=playing)
    return _make


@pytest.fixture
def make_scrobble():
    def _make(track="Imagine", artists=("John Lennon",), album="Imagine",
              duration=183.0, timestamp=T0):
        return Scrobble(artists=tuple(artists), track=track, album=album,
                        duration=duration, timestamp=timestamp)
    return _make


@pytest.fixture
def at():
    """at(90) -> T0 + 90 seconds"""
    return lambda seconds: T0 + timedelta(seconds=seconds)


@pytest.fixture
def fake_sink():
    return FakeSink


@pytest.fixture
def fake_source():
    return FakeSource
