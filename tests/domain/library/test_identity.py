"""Tests for identity resolution."""

import uuid
from unittest.mock import patch

import pytest

from songbook.core.exceptions import InvalidIdentityError, MissingIdentityError, WriteFailureError
from songbook.domain.library.identity import read_identity, resolve_identity
from songbook.domain.library.models import Song
from songbook.domain.library.tags import open_tags


class TestReadIdentity:
    """Tests for read_identity."""

    def test_absent_field(self, tmp_path, make_mp3):
        path = make_mp3(tmp_path / "a.mp3")
        assert read_identity(open_tags(path), path) is None

    def test_valid_field(self, tmp_path, make_flac):
        identity = uuid.uuid4()
        path = make_flac(tmp_path / "a.flac", identity=str(identity))
        assert read_identity(open_tags(path), path) == identity

    def test_unparsable_field_is_an_error(self, tmp_path, make_mp3):
        """A corrupt identity is never silently replaced."""
        path = make_mp3(tmp_path / "a.mp3", identity="not-a-uuid")
        with pytest.raises(InvalidIdentityError) as excinfo:
            read_identity(open_tags(path), path)
        assert excinfo.value.path == path

    @pytest.mark.parametrize("kind", ["mp3", "flac"])
    def test_blank_field_is_an_error(self, tmp_path, make_mp3, make_flac, kind):
        """A present but blank identity is not treated as missing."""
        make = make_mp3 if kind == "mp3" else make_flac
        path = make(tmp_path / f"a.{kind}", identity="   ")

        with pytest.raises(InvalidIdentityError):
            read_identity(open_tags(path), path)
        with pytest.raises(InvalidIdentityError):
            resolve_identity(Song.parse(path), assign=True)
        assert open_tags(path).get_raw_field("identity") == "   "


class TestResolveIdentity:
    """Tests for resolve_identity."""

    def test_assigns_and_persists(self, tmp_path, make_mp3):
        path = make_mp3(tmp_path / "a.mp3")
        song = Song.parse(path)

        identity = resolve_identity(song, assign=True)

        assert song.identity == identity
        assert Song.parse(path).tags.get_field("identity") == str(identity)

    def test_missing_without_assignment(self, tmp_path, make_mp3):
        path = make_mp3(tmp_path / "a.mp3")
        with pytest.raises(MissingIdentityError):
            resolve_identity(Song.parse(path), assign=False)

    def test_existing_identity_is_kept(self, tmp_path, make_flac):
        identity = uuid.uuid4()
        song = Song.parse(make_flac(tmp_path / "a.flac", identity=str(identity)))

        assert resolve_identity(song, assign=True) == identity

    def test_idempotent_without_second_write(self, tmp_path, make_mp3):
        """Resolving an identified file again never rewrites it."""
        path = make_mp3(tmp_path / "a.mp3")
        first = resolve_identity(Song.parse(path), assign=True)

        song = Song.parse(path)
        with patch.object(type(song.tags), "save") as save:
            second = resolve_identity(song, assign=True)

        assert second == first
        save.assert_not_called()

    def test_rejected_field_is_write_failure(self, tmp_path, make_mp3):
        path = make_mp3(tmp_path / "a.mp3")
        song = Song.parse(path)
        with patch.object(type(song.tags), "set_field", return_value=False):
            with pytest.raises(WriteFailureError):
                resolve_identity(song, assign=True)
        assert song.identity is None
