"""
Deterministic file layout from metadata.

Every song has one canonical location, ``Artist/Album/Title.ext``, with
fixed fallbacks for missing fields. Sorting moves files there inside the
library, or copies them into a fresh tree elsewhere.

A failed copy or move stops the sort; files already placed stay where they
are.
"""

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from loguru import logger

from songbook.core.exceptions import LibraryIOError, SortError
from songbook.core.paths import RelativePath

from .models import Song

UNKNOWN_ARTIST = "UnknownArtist"
SINGLES_ALBUM = "Singles"


@dataclass
class SortResult:
    """Outcome of placing songs at their canonical paths."""

    moved: list[tuple[Path, Path]] = field(default_factory=list)  # (source, destination)
    copied: list[tuple[Path, Path]] = field(default_factory=list)
    unchanged: list[Path] = field(default_factory=list)


def sanitize_segment(value: Optional[str], fallback: str) -> str:
    """Make a metadata value usable as a single path segment.

    Separators become underscores and a leading dot is replaced so the
    entry is not hidden from later scans. Blank values use the fallback.
    """
    if value is None or not value.strip():
        return fallback
    cleaned = value.strip().replace("/", "_").replace("\\", "_").replace("\x00", "")
    if cleaned.startswith("."):
        cleaned = "_" + cleaned[1:]
    return cleaned or fallback


def canonical_path_for(
    artist: Optional[str],
    album: Optional[str],
    title: Optional[str],
    filename: str,
) -> RelativePath:
    """Canonical relative path from raw tag values and the source file name.

    The extension always comes from the source file. Without a title the
    file's own stem is used, so the file name is kept as is.
    """
    source = Path(filename)
    title_segment = sanitize_segment(title, sanitize_segment(source.stem, "Untitled"))
    return RelativePath(
        (
            sanitize_segment(artist, UNKNOWN_ARTIST),
            sanitize_segment(album, SINGLES_ALBUM),
            f"{title_segment}{source.suffix}",
        )
    )


def canonical_path(song: Song) -> RelativePath:
    """Canonical relative path for a song, from its tags."""
    return canonical_path_for(
        song.tags.get_field("artist"),
        song.tags.get_field("album"),
        song.tags.get_field("title"),
        song.path.name,
    )


def _same_file(a: Path, b: Path) -> bool:
    try:
        return os.path.samefile(a, b)
    except OSError:
        return False


def _place(source: Path, destination: Path, move: bool) -> None:
    """Copy (and for moves, delete) one file, creating parent directories."""
    if destination.exists():
        if _same_file(source, destination):
            raise SortError(f"unable to copy '{source}' onto itself", source)
        raise SortError(
            f"unable to place '{source}': '{destination}' already exists", destination
        )
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, destination)
    except OSError as e:
        raise LibraryIOError(destination, e) from e
    if move:
        try:
            source.unlink()
        except OSError as e:
            raise LibraryIOError(source, e) from e


def move_songs(root: Path, songs: list[Song]) -> SortResult:
    """Move songs to their canonical paths under their own library root.

    Each moved Song's path is updated so a following reconciliation sees the
    new locations.
    """
    result = SortResult()
    for song in songs:
        target = canonical_path(song)
        if song.relative_path(root) == target:
            result.unchanged.append(song.path)
            continue

        destination = target.rebase(root)
        if destination == song.path:
            result.unchanged.append(song.path)
            continue

        logger.info(f"moving '{song.path}' to '{destination}'")
        _place(song.path, destination, move=True)
        result.moved.append((song.path, destination))
        song.path = destination
    return result


def copy_songs(root: Path, songs: list[Song], destination_root: Path) -> SortResult:
    """Copy songs into canonical paths under a separate destination root.

    Raises:
        SortError: If the destination is the library root itself or not a directory
    """
    destination_root = Path(destination_root)
    if destination_root.resolve() == Path(root).resolve():
        raise SortError("source and destination directories are the same", destination_root)

    try:
        destination_root.mkdir(parents=True, exist_ok=True)
    except FileExistsError:
        raise SortError("destination is not a directory", destination_root) from None
    except OSError as e:
        raise LibraryIOError(destination_root, e) from e
    if not destination_root.is_dir():
        raise SortError("destination is not a directory", destination_root)

    result = SortResult()
    for song in songs:
        destination = canonical_path(song).rebase(destination_root)
        if destination == song.path:
            raise SortError(f"unable to copy '{song.path}' onto itself", song.path)
        logger.info(f"copying '{song.path}' to '{destination}'")
        _place(song.path, destination, move=False)
        result.copied.append((song.path, destination))
    return result
