from datetime import datetime, timedelta, timezone

import pytest

from scrobble_bridge.scrobble import ScrobbleDecodeError
from scrobble_bridge.sink import SinkError
from scrobble_bridge.sink_file import FileSink

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
FAR_FUTURE = datetime(9999, 1, 1, tzinfo=timezone.utc)


class TestFileSink:
    def test_write_then_read_is_exact_including_unicode(self, tmp_path, make_scrobble):
        sink = FileSink(str(tmp_path / "scrobbles.csv"))
        original = make_scrobble(artists=("Sigur Rós", "Björk", "Тату"), track="Hoppípolla, \"live\"",
                                 album="Takk...", duration=268.25)
        sink.scrobble(original)

        [read_back] = sink.get_scrobbles(0, EPOCH, FAR_FUTURE)
        assert read_back == original
        assert read_back.artists == original.artists

    def test_creates_missing_file_and_directories(self, tmp_path, make_scrobble):
        path = tmp_path / "nested" / "dir" / "scrobbles.csv"
        FileSink(str(path)).scrobble(make_scrobble())
        assert path.exists()
        assert not (tmp_path / "nested" / "dir" / "scrobbles.csv.tmp").exists()

    def test_each_scrobble_is_one_line(self, tmp_path, make_scrobble, at):
        path = tmp_path / "scrobbles.csv"
        sink = FileSink(str(path))
        for i in range(3):
            sink.scrobble(make_scrobble(track=f"Track {i}", timestamp=at(i * 60)))
        assert len(path.read_text(encoding="utf-8").splitlines()) == 3

    def test_history_is_newest_first_with_limit(self, tmp_path, make_scrobble, at):
        sink = FileSink(str(tmp_path / "scrobbles.csv"))
        for i in range(5):
            sink.scrobble(make_scrobble(track=f"Track {i}", timestamp=at(i * 60)))

        tracks = [s.track for s in sink.get_scrobbles(0, EPOCH, FAR_FUTURE)]
        assert tracks == ["Track 4", "Track 3", "Track 2", "Track 1", "Track 0"]

        tracks = [s.track for s in sink.get_scrobbles(2, EPOCH, FAR_FUTURE)]
        assert tracks == ["Track 4", "Track 3"]

        assert len(sink.get_scrobbles(-1, EPOCH, FAR_FUTURE)) == 5

    def test_history_window_is_inclusive(self, tmp_path, make_scrobble, at):
        sink = FileSink(str(tmp_path / "scrobbles.csv"))
        for i in range(5):
            sink.scrobble(make_scrobble(track=f"Track {i}", timestamp=at(i * 60)))

        tracks = [s.track for s in sink.get_scrobbles(0, at(60), at(180))]
        assert tracks == ["Track 3", "Track 2", "Track 1"]

        tracks = [s.track for s in sink.get_scrobbles(1, at(60), at(180))]
        assert tracks == ["Track 3"]

    def test_window_compares_across_timezones(self, tmp_path, make_scrobble, at):
        sink = FileSink(str(tmp_path / "scrobbles.csv"))
        sink.scrobble(make_scrobble(timestamp=at(0)))
        plus_two = timezone(timedelta(hours=2))
        assert len(sink.get_scrobbles(0, at(0).astimezone(plus_two), at(0).astimezone(plus_two))) == 1

    def test_missing_file_history_raises(self, tmp_path):
        with pytest.raises(SinkError):
            FileSink(str(tmp_path / "nope.csv")).get_scrobbles(0, EPOCH, FAR_FUTURE)

    def test_unusual_artist_names_survive_the_file(self, tmp_path, make_scrobble, at):
        sink = FileSink(str(tmp_path / "scrobbles.csv"))
        written = [make_scrobble(artists=("",), timestamp=at(0)),
                   make_scrobble(artists=("A\x1fB", "Tyler, The Creator"), timestamp=at(60))]
        for s in written:
            sink.scrobble(s)
        assert sink.get_scrobbles(0, EPOCH, FAR_FUTURE) == list(reversed(written))

    def test_malformed_line_is_a_hard_failure(self, tmp_path, make_scrobble):
        path = tmp_path / "scrobbles.csv"
        sink = FileSink(str(path))
        sink.scrobble(make_scrobble())
        with open(path, "a", encoding="utf-8") as f:
            f.write("not,a,scrobble\n")

        with pytest.raises(ScrobbleDecodeError):
            sink.get_scrobbles(0, EPOCH, FAR_FUTURE)
        # appending refuses to rewrite a corrupt table
        with pytest.raises(ScrobbleDecodeError):
            sink.scrobble(make_scrobble())

    def test_now_playing_writes_nothing(self, tmp_path, make_scrobble):
        path = tmp_path / "scrobbles.csv"
        FileSink(str(path)).now_playing(make_scrobble())
        assert not path.exists()
