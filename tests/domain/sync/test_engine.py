"""Tests for reconciliation between scans and the index."""

import shutil
import uuid

import pytest

from songbook.core.database import LibraryIndex
from songbook.domain.library.scanner import scan_directory
from songbook.domain.library.tags import open_tags
from songbook.domain.sync.engine import reconcile


@pytest.fixture
def index(library_dir):
    with LibraryIndex.init(library_dir) as idx:
        yield idx


def stored_paths(index):
    entries = index.with_read_transaction(lambda txn: txn.entries())
    return {identity: str(entry.path) for identity, entry in entries}


class TestReconcile:
    """Tests for the assign, add, prune and clean steps."""

    def test_first_pass_indexes_every_song(self, library_dir, index):
        songs = scan_directory(library_dir)

        result = reconcile(library_dir, songs, index)

        assert len(result.assigned) == 3
        assert len(result.added) == 3
        assert sorted(stored_paths(index).values()) == ["nested/two.mp3", "one.mp3", "three.mp3"]
        assert set(stored_paths(index)) == {song.identity for song in songs}

    def test_second_pass_changes_nothing(self, library_dir, index):
        reconcile(library_dir, scan_directory(library_dir), index)

        result = reconcile(library_dir, scan_directory(library_dir), index)

        assert not result.index_changed
        assert result.assigned == []

    def test_deleted_file_is_pruned(self, library_dir, index):
        songs = scan_directory(library_dir)
        reconcile(library_dir, songs, index)
        gone = next(song for song in songs if song.path.name == "one.mp3")
        gone.path.unlink()

        result = reconcile(library_dir, scan_directory(library_dir), index)

        assert [identity for identity, _ in result.removed] == [gone.identity]
        assert str(result.removed[0][1]) == "one.mp3"
        assert gone.identity not in stored_paths(index)

    def test_moved_file_is_relocated(self, library_dir, index):
        """A file moved outside the sorter keeps its identity and gets its new path."""
        songs = scan_directory(library_dir)
        reconcile(library_dir, songs, index)
        moved = next(song for song in songs if song.path.name == "one.mp3")
        (library_dir / "elsewhere").mkdir()
        shutil.move(moved.path, library_dir / "elsewhere" / "one.mp3")

        result = reconcile(library_dir, scan_directory(library_dir), index)

        assert result.relocated[0][0] == moved.identity
        assert stored_paths(index)[moved.identity] == "elsewhere/one.mp3"
        assert result.removed == []

    def test_paths_kept_without_refresh(self, library_dir, index):
        songs = scan_directory(library_dir)
        reconcile(library_dir, songs, index)
        moved = next(song for song in songs if song.path.name == "one.mp3")
        shutil.move(moved.path, library_dir / "renamed.mp3")

        result = reconcile(library_dir, scan_directory(library_dir), index, refresh_paths=False)

        assert result.relocated == []
        assert stored_paths(index)[moved.identity] == "one.mp3"

    def test_without_assignment_unidentified_songs_are_reported(self, library_dir, index):
        result = reconcile(library_dir, scan_directory(library_dir), index, assign=False)

        assert len(result.missing_identity) == 3
        assert stored_paths(index) == {}

    def test_duplicate_identity_indexed_once(self, library_dir, index, make_mp3):
        shared = str(uuid.uuid4())
        make_mp3(library_dir / "a-copy.mp3", identity=shared)
        make_mp3(library_dir / "b-copy.mp3", identity=shared)

        result = reconcile(library_dir, scan_directory(library_dir), index)

        assert stored_paths(index)[uuid.UUID(shared)] == "a-copy.mp3"
        assert [path.name for _, path in result.duplicates] == ["b-copy.mp3"]

    def test_blank_fields_cleaned(self, library_dir, index, make_flac):
        path = make_flac(library_dir / "blank.flac", title="T", extra={"GENRE": " "})

        result = reconcile(library_dir, scan_directory(library_dir), index)

        assert path in result.cleaned
        assert open_tags(path).get_field("genre") is None
