"""Tests for metadata display helpers."""

from songbook.domain.library.metadata import describe_song, show_songs, song_to_map
from songbook.domain.library.models import Song


def test_song_to_map_is_sorted(tmp_path, make_mp3):
    path = make_mp3(tmp_path / "a.mp3", title="T", artist="A", album="B")

    fields = song_to_map(path)

    assert fields == {"album": "B", "artist": "A", "title": "T"}
    assert list(fields) == sorted(fields)


def test_show_songs_continues_past_bad_files(tmp_path, make_mp3, make_garbage, make_untagged):
    """Unreadable files are reported while the rest are shown."""
    good = make_mp3(tmp_path / "good.mp3", title="Good")
    bad = make_garbage(tmp_path / "bad.mp3")
    plain = make_untagged(tmp_path / "plain.mp3")

    result = show_songs([bad, good, plain])

    assert list(result.songs) == [str(good)]
    assert result.songs[str(good)]["title"] == "Good"
    assert len(result.errors) == 2
    assert str(bad) in result.errors[0]


class TestDescribeSong:
    """Tests for describe_song."""

    def test_full_description(self, tmp_path, make_flac):
        song = Song.parse(make_flac(tmp_path / "a.flac", title="T", artist="A", album="B"))
        assert describe_song(song) == "'T' by A in album B"

    def test_untitled(self, tmp_path, make_mp3):
        song = Song.parse(make_mp3(tmp_path / "a.mp3", title=None, artist="A"))
        assert describe_song(song) == "Untitled Song by A"
