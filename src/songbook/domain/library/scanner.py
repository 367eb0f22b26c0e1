"""
Music library scanning.

Walks a library root for audio files and parses each one into a Song. A
scan is all-or-nothing: the first unreadable file aborts it with that
file's path attached.
"""

import os
from pathlib import Path
from typing import Iterator

from loguru import logger

from songbook.core.exceptions import LibraryIOError, MissingIdentityError

from .identity import resolve_identity
from .models import Song

SUPPORTED_EXTENSIONS = ("mp3", "flac", "aac")
PLAYLIST_EXTENSION = ".m3u"
MAX_SCAN_DEPTH = 5


def is_supported_format(path: Path) -> bool:
    """Check the extension against the supported set (case-sensitive)."""
    return path.suffix[1:] in SUPPORTED_EXTENSIONS


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def iter_music_files(root: Path, max_depth: int = MAX_SCAN_DEPTH) -> Iterator[Path]:
    """Yield regular music files under root in a stable order.

    Depth counts the root as 0, so a file directly under it is at depth 1.
    Symbolic links are never followed or returned, and dot-prefixed entries
    below the root are skipped along with everything beneath them.
    """

    def walk(directory: Path, depth: int) -> Iterator[Path]:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            raise LibraryIOError(directory, e) from e

        for entry in entries:
            if _is_hidden(entry.name) or entry.is_symlink():
                continue
            path = Path(entry.path)
            if entry.is_dir(follow_symlinks=False):
                if depth + 1 < max_depth:
                    yield from walk(path, depth + 1)
            elif entry.is_file(follow_symlinks=False):
                if is_supported_format(path):
                    yield path
                else:
                    logger.trace(f"skipping '{path}': not a supported music file")

    yield from walk(Path(root), 0)


def scan_directory(root: Path, assign_identities: bool = False) -> list[Song]:
    """Scan a library root for music files and resolve their identities.

    Args:
        root: Directory to scan
        assign_identities: Write a new identity into files lacking one

    Returns:
        List of Song objects, in path order

    Raises:
        SongFileError: On the first file that cannot be parsed or identified
        LibraryIOError: If a directory cannot be listed
    """
    songs = []
    for path in iter_music_files(root):
        song = Song.parse(path)
        try:
            resolve_identity(song, assign=assign_identities)
        except MissingIdentityError:
            logger.debug(f"'{path}' has no identity yet")
        songs.append(song)

    logger.debug(f"scanned {len(songs)} songs under '{root}'")
    return songs


def find_playlists(root: Path) -> list[Path]:
    """Collect playlist files directly under root, unparsed."""
    try:
        entries = sorted(Path(root).iterdir())
    except OSError as e:
        raise LibraryIOError(Path(root), e) from e
    return [
        entry
        for entry in entries
        if entry.suffix == PLAYLIST_EXTENSION and entry.is_file() and not entry.is_symlink()
    ]
