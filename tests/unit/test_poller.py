import logging

import pytest

import scrobble_bridge.poller as poller_mod
from scrobble_bridge.dispatch import Dispatcher
from scrobble_bridge.policy import Policy
from scrobble_bridge.poller import Poller
from scrobble_bridge.source import SourceError
from scrobble_bridge.state import EventKind, Snapshot


class TestPollerTick:
    def test_routes_tracker_events_to_sinks(self, policy, fake_sink, fake_source, make_snapshot, at):
        sink = fake_sink()
        source = fake_source("player", [make_snapshot(duration=400)])
        p = Poller([source], Dispatcher([sink]), policy)

        p.tick(at(0))
        for t in range(10, 210, 10):
            p.tick(at(t))

        assert len(sink.now_playing_calls) == 1
        assert len(sink.scrobble_calls) == 1
        assert sink.scrobble_calls[0].track == "Imagine"

    def test_source_error_counts_as_nothing_playing(self, policy, fake_sink, fake_source, make_snapshot, at, caplog):
        snap = make_snapshot()
        flaky = fake_source("flaky", [snap, SourceError("unreachable"), snap])
        steady = fake_source("steady", [make_snapshot(track="Other")])
        sink = fake_sink()
        p = Poller([flaky, steady], Dispatcher([sink]), policy)

        p.tick(at(0))
        with caplog.at_level(logging.WARNING, logger="poller"):
            events = p.tick(at(10))
        assert events == []
        assert "[flaky] poll failed" in caplog.text

        # flaky's session was dropped, so its track is announced again
        events = p.tick(at(20))
        assert [e.scrobble.track for e in events] == ["Imagine"]
        # steady kept its session through flaky's failure
        assert p.trackers[1].session.accumulated == 20

    def test_unexpected_exception_is_also_isolated(self, policy, fake_source, at):
        p = Poller([fake_source("bad", [ValueError("bug")])], Dispatcher([]), policy)
        assert p.tick(at(0)) == []

    def test_malformed_snapshot_counts_as_nothing_playing(self, policy, fake_sink, fake_source, make_snapshot,
                                                          at, caplog):
        malformed = Snapshot(artists=(1999,), track="1999", album="", duration=200.0, position=0.0, playing=True)
        bad = fake_source("bad", [make_snapshot(), malformed])
        good = fake_source("good", [make_snapshot(track="Other")])
        sink = fake_sink()
        p = Poller([bad, good], Dispatcher([sink]), policy)

        p.tick(at(0))
        with caplog.at_level(logging.WARNING, logger="poller"):
            events = p.tick(at(10))
        assert events == []
        assert "[bad] could not track snapshot" in caplog.text
        assert p.trackers[0].session is None
        assert p.trackers[1].session.accumulated == 10

    def test_sources_are_tracked_independently(self, policy, fake_source, make_snapshot, at):
        same = make_snapshot()
        p = Poller([fake_source("a", [same]), fake_source("b", [same])], Dispatcher([]), policy)
        events = p.tick(at(0))
        assert [e.kind for e in events] == [EventKind.NOW_PLAYING, EventKind.NOW_PLAYING]
        assert p.trackers[0].session is not p.trackers[1].session

    def test_sink_failure_does_not_abort_tick(self, policy, fake_sink, fake_source, make_snapshot, at):
        broken = fake_sink("broken", fail_now_playing=True)
        p = Poller([fake_source("a", [make_snapshot(track="A")]),
                    fake_source("b", [make_snapshot(track="B")])],
                   Dispatcher([broken]), policy)
        events = p.tick(at(0))
        assert len(events) == 2
        assert len(broken.now_playing_calls) == 2


class _Stop(Exception):
    pass


class TestPollerRun:
    def test_run_ticks_then_sleeps_poll_interval(self, fake_source, make_snapshot, monkeypatch):
        sleeps = []

        def fake_sleep(seconds):
            sleeps.append(seconds)
            if len(sleeps) == 3:
                raise _Stop

        monkeypatch.setattr(poller_mod.time, "sleep", fake_sleep)
        source = fake_source("a", [make_snapshot()])
        p = Poller([source], Dispatcher([]), Policy(poll_interval=7))

        with pytest.raises(_Stop):
            p.run()
        assert sleeps == [7, 7, 7]
        assert source.polls == 3

    def test_run_warns_without_sources_or_sinks(self, monkeypatch, caplog):
        def fake_sleep(seconds):
            raise _Stop

        monkeypatch.setattr(poller_mod.time, "sleep", fake_sleep)
        p = Poller([], Dispatcher([]), Policy())
        with caplog.at_level(logging.WARNING, logger="poller"), pytest.raises(_Stop):
            p.run()
        assert "no sources configured" in caplog.text
        assert "no sinks configured" in caplog.text
