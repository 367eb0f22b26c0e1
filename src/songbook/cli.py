"""
Songbook CLI - Entry point

Each subcommand runs one library operation, prints its outcome and returns
an exit code. Any SongbookError ends the run with a message on stderr and
exit status 1.
"""

import argparse
import os
import sys
from pathlib import Path
from typing import Optional

import tomli_w
from loguru import logger

from songbook.core.config import VALID_LOG_LEVELS, Config, load_config
from songbook.core.console import print_error, safe_print
from songbook.core.database import LibraryIndex
from songbook.core.exceptions import SongbookError
from songbook.core.output import setup_loguru
from songbook.domain.library import describe_song, edit_song, show_songs
from songbook.domain.sync import ReconcileResult
from songbook.library import (
    dump_index,
    init_library,
    list_tracked,
    open_library,
    sort_library,
    update_library,
)


def print_reconcile_summary(result: ReconcileResult) -> None:
    """Print what a reconciliation pass changed."""
    safe_print(
        f"{len(result.added)} added, {len(result.relocated)} relocated, "
        f"{len(result.removed)} removed",
        style="green" if result.index_changed else None,
    )
    if result.assigned:
        safe_print(f"Assigned identities to {len(result.assigned)} files")
    if result.cleaned:
        safe_print(f"Removed blank fields from {len(result.cleaned)} files")
    for path in result.missing_identity:
        safe_print(f"  ⚠ not indexed, no identity: {path}", style="yellow")
    for identity, path in result.duplicates:
        safe_print(f"  ⚠ not indexed, duplicate identity {identity}: {path}", style="yellow")


def run_init(directory: Path, force: bool) -> int:
    library, result = init_library(directory, force=force)
    with library:
        safe_print(f"Initialized library at {library.root}", style="bold")
        print_reconcile_summary(result)
    return 0


def run_update(directory: Path, config: Config) -> int:
    with open_library(directory, config) as library:
        print_reconcile_summary(update_library(library, assign_identities=True))
    return 0


def run_list(directory: Path, config: Config, long: bool = False) -> int:
    with open_library(directory, config) as library:
        for song in list_tracked(library):
            if long:
                safe_print(f"{song.path}: {describe_song(song)}")
            else:
                safe_print(str(song.path))
    return 0


def run_sort(
    directory: Path,
    config: Config,
    destination: Optional[Path],
    ignore_db: bool,
    auto_init: bool,
) -> int:
    outcome = sort_library(
        directory,
        destination=destination,
        ignore_db=ignore_db,
        auto_init=auto_init,
        config=config,
    )
    placement = outcome.placement
    if destination is None:
        safe_print(f"Moved {len(placement.moved)} files ({len(placement.unchanged)} already in place)")
    else:
        safe_print(f"Copied {len(placement.copied)} files to {destination}")
    if outcome.initialized is not None:
        safe_print(f"Initialized library at {outcome.initialized}", style="bold")
    if outcome.reconciled is not None:
        print_reconcile_summary(outcome.reconciled)
    return 0


def run_dump_db(directory: Path, config: Config) -> int:
    with LibraryIndex.open(directory, max_levels=config.index.search_levels) as index:
        contents = dump_index(index)
    sys.stdout.write(tomli_w.dumps(contents))
    return 0


def run_show(paths: list[Path]) -> int:
    result = show_songs(paths)
    sys.stdout.write(tomli_w.dumps(result.songs))
    return 0


def run_edit(path: Path, config: Config, editor: Optional[str]) -> int:
    result = edit_song(path, editor=editor, configured_editor=config.editor.command)
    if result.modified:
        safe_print(
            f"Updated {len(result.changed)} fields, removed {len(result.removed)} from {path}",
            style="green",
        )
    else:
        safe_print(f"No changes to {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for the songbook command."""
    parser = argparse.ArgumentParser(
        prog="songbook",
        description="Songbook - keep a music library in order",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Global options
    parser.add_argument(
        "-l", "--log-level",
        type=str.upper,
        choices=VALID_LOG_LEVELS,
        default=None,
        help="Log level: trace, debug, info, warning, error (default: from config, else info)",
    )
    parser.add_argument(
        "-d", "--directory",
        type=Path,
        default=None,
        help="Music directory (default: current directory)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Configuration file (default: $SONGBOOK_CONFIG or ~/.config/songbook/config.toml)",
    )

    subparsers = parser.add_subparsers(dest="subcommand", required=True, help="Available commands")

    init_parser = subparsers.add_parser("init", help="Create a library index in the music directory")
    init_parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Replace an index that already exists in the music directory",
    )

    subparsers.add_parser("update", help="Rescan the library and update the index")

    list_parser = subparsers.add_parser("list", help="List files tracked by the index")
    list_parser.add_argument(
        "--long",
        action="store_true",
        help="Include title, artist and album",
    )

    sort_parser = subparsers.add_parser("sort", help="Sort files into Artist/Album/Title")
    sort_parser.add_argument(
        "-D", "--destination-directory",
        type=Path,
        default=None,
        help="Copy files into this directory rather than moving them",
    )
    db_group = sort_parser.add_mutually_exclusive_group()
    db_group.add_argument(
        "-i", "--ignore-db",
        action="store_true",
        help="Don't use or update the library index",
    )
    db_group.add_argument(
        "-a", "--auto-init",
        action="store_true",
        help="Initialize a library in the destination directory (requires -D)",
    )

    subparsers.add_parser("dump-db", help="Print the raw contents of the library index")

    show_parser = subparsers.add_parser("show", help="Print the metadata of songs as TOML")
    show_parser.add_argument("songs", nargs="+", type=Path, help="Paths to the songs")

    edit_parser = subparsers.add_parser("edit", help="Edit the metadata of a song in an editor")
    edit_parser.add_argument("song", type=Path, help="Path to the song to edit")
    edit_parser.add_argument(
        "-e", "--editor",
        default=None,
        help="Override the editor command",
    )

    return parser


def dispatch(args: argparse.Namespace, config: Config) -> int:
    """Run the selected subcommand."""
    directory = args.directory
    if directory is None:
        logger.debug("no directory supplied, defaulting to current directory")
        directory = Path(os.getcwd())

    if args.subcommand == "init":
        return run_init(directory, args.force)
    elif args.subcommand == "update":
        return run_update(directory, config)
    elif args.subcommand == "list":
        return run_list(directory, config, long=args.long)
    elif args.subcommand == "sort":
        return run_sort(
            directory,
            config,
            args.destination_directory,
            args.ignore_db,
            args.auto_init,
        )
    elif args.subcommand == "dump-db":
        return run_dump_db(directory, config)
    elif args.subcommand == "show":
        return run_show(args.songs)
    elif args.subcommand == "edit":
        return run_edit(args.song, config, args.editor)
    raise ValueError(f"unknown subcommand {args.subcommand!r}")


def run(argv: Optional[list[str]] = None) -> int:
    """Parse arguments, configure logging and run one command."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except SongbookError as e:
        print_error(str(e))
        return 1

    level = args.log_level or config.logging.level
    log_file = Path(config.logging.log_file) if config.logging.log_file else None
    setup_loguru(level=level, log_file=log_file, console_output=config.logging.console_output)

    try:
        return dispatch(args, config)
    except SongbookError as e:
        logger.debug(f"{type(e).__name__}: {e}")
        print_error(str(e))
        return 1


def main() -> None:
    """Main entry point for the songbook command."""
    sys.exit(run())


if __name__ == "__main__":
    main()
