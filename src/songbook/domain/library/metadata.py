"""
Song metadata display utilities.
"""

from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from songbook.core.exceptions import ParseError, UntaggedError

from .models import Song
from .tags import open_tags


@dataclass
class ShowResult:
    """Metadata maps for readable files plus the errors for the rest."""

    songs: dict[str, dict[str, str]] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)


def song_to_map(path: Path) -> dict[str, str]:
    """All text fields of a file's primary tag, keyed by field name."""
    return dict(sorted(open_tags(path).items().items()))


def show_songs(paths: list[Path]) -> ShowResult:
    """Read metadata for several files; unreadable ones are reported, not fatal."""
    result = ShowResult()
    for path in paths:
        try:
            result.songs[str(path)] = song_to_map(path)
        except (ParseError, UntaggedError) as e:
            logger.error(str(e))
            result.errors.append(str(e))
    return result


def describe_song(song: Song) -> str:
    """One-line summary: 'Title' by Artist in album Album."""
    title = song.tags.get_field("title")
    artist = song.tags.get_field("artist")
    album = song.tags.get_field("album")

    description = f"'{title}'" if title else "Untitled Song"
    if artist:
        description += f" by {artist}"
    if album:
        description += f" in album {album}"
    return description
