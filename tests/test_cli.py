"""Tests for the command line entry point."""

import tomllib
from unittest.mock import patch

import pytest
from loguru import logger

from songbook.cli import build_parser, run
from songbook.core.database import INDEX_FILENAME


@pytest.fixture(autouse=True)
def cli_env(tmp_path, monkeypatch):
    """Keep the user's config and log sinks out of CLI runs."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    for name in ("SONGBOOK_CONFIG", "SONGBOOK_EDITOR", "SONGBOOK_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    yield
    logger.remove()


def songbook(directory, *args):
    return run(["-l", "error", "-d", str(directory), *args])


class TestParser:
    """Argument parsing."""

    def test_sort_flags(self):
        args = build_parser().parse_args(["sort", "-D", "/tmp/out", "-a"])
        assert str(args.destination_directory) == "/tmp/out"
        assert args.auto_init and not args.ignore_db

    def test_ignore_db_and_auto_init_conflict(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["sort", "-i", "-a"])

    def test_subcommand_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestCommands:
    """End-to-end command runs against a temporary library."""

    def test_init_then_dump(self, library_dir, capsys):
        assert songbook(library_dir, "init") == 0
        assert (library_dir / INDEX_FILENAME).is_file()
        capsys.readouterr()

        assert songbook(library_dir, "dump-db") == 0
        dumped = tomllib.loads(capsys.readouterr().out)
        assert sorted(entry["path_segments"] for entry in dumped.values()) == [
            ["nested", "two.mp3"],
            ["one.mp3"],
            ["three.mp3"],
        ]

    def test_second_init_fails(self, library_dir, capsys):
        songbook(library_dir, "init")

        assert songbook(library_dir, "init") == 1
        assert INDEX_FILENAME in capsys.readouterr().err

    def test_update_without_index(self, library_dir, capsys):
        assert songbook(library_dir, "update") == 1
        assert "unable to find a library index" in capsys.readouterr().err

    def test_update_prunes_deleted_file(self, library_dir, capsys):
        songbook(library_dir, "init")
        (library_dir / "three.mp3").unlink()
        capsys.readouterr()

        assert songbook(library_dir, "update") == 0
        assert "1 removed" in capsys.readouterr().out

        songbook(library_dir, "dump-db")
        dumped = tomllib.loads(capsys.readouterr().out)
        assert ["three.mp3"] not in [entry["path_segments"] for entry in dumped.values()]

    def test_list(self, library_dir, capsys):
        songbook(library_dir, "init")
        capsys.readouterr()

        assert songbook(library_dir, "list", "--long") == 0
        out = capsys.readouterr().out
        assert "'One' by Artist A in album Album B" in out
        assert "three.mp3" in out

    def test_sort_in_place(self, library_dir, capsys):
        songbook(library_dir, "init")

        assert songbook(library_dir, "sort") == 0
        assert (library_dir / "Artist A" / "Album B" / "One.mp3").is_file()

    def test_sort_conflicting_flags(self, library_dir):
        with pytest.raises(SystemExit):
            songbook(library_dir, "sort", "--ignore-db", "--auto-init")

    def test_sort_auto_init_needs_destination(self, library_dir, capsys):
        songbook(library_dir, "init")
        capsys.readouterr()

        assert songbook(library_dir, "sort", "--auto-init") == 1
        assert "auto-init needs a destination" in capsys.readouterr().err
        assert (library_dir / "one.mp3").is_file()

    def test_init_creates_missing_directory(self, tmp_path):
        root = tmp_path / "fresh"

        assert songbook(root, "init") == 0
        assert (root / INDEX_FILENAME).is_file()

    def test_show_reports_bad_files(self, tmp_path, make_mp3, make_garbage, capsys):
        good = make_mp3(tmp_path / "good.mp3", title="Good")
        bad = make_garbage(tmp_path / "bad.mp3")

        assert run(["-l", "critical", "show", str(good), str(bad)]) == 0

        shown = tomllib.loads(capsys.readouterr().out)
        assert shown == {str(good): {"title": "Good"}}

    def test_edit_uses_override(self, tmp_path, make_mp3):
        path = make_mp3(tmp_path / "a.mp3", title="T")

        with patch("songbook.cli.edit_song") as edit:
            edit.return_value.modified = False
            assert run(["edit", str(path), "-e", "myeditor"]) == 0

        edit.assert_called_once_with(path, editor="myeditor", configured_editor=None)

    def test_bad_config_exits_nonzero(self, tmp_path, library_dir, capsys):
        config = tmp_path / "bad.toml"
        config.write_text("[logging\n")

        assert run(["--config", str(config), "-d", str(library_dir), "update"]) == 1
        assert "invalid configuration" in capsys.readouterr().err
