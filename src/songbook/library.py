"""
Library operations behind the command line.

A Library ties a root directory to its open index and the songs found by
the latest scan. Each operation returns a structured outcome; printing is
left to the caller.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from loguru import logger

from songbook.core.config import Config
from songbook.core.database import LibraryIndex
from songbook.core.exceptions import SortError
from songbook.core.paths import is_path_within
from songbook.domain.library import (
    Song,
    SortResult,
    copy_songs,
    find_playlists,
    move_songs,
    scan_directory,
)
from songbook.domain.sync import ReconcileResult, reconcile


@dataclass
class Library:
    """A library root, its index and the songs found under it."""

    root: Path
    index: LibraryIndex
    songs: list[Song] = field(default_factory=list)
    playlists: list[Path] = field(default_factory=list)

    def close(self) -> None:
        self.index.close()

    def __enter__(self) -> "Library":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


@dataclass
class SortOutcome:
    """Result of a sort: file placements plus any follow-up reconciliation."""

    placement: SortResult
    reconciled: Optional[ReconcileResult] = None
    initialized: Optional[Path] = None  # Root of a library created by auto-init


def _scan(root: Path) -> tuple[list[Song], list[Path]]:
    return scan_directory(root, assign_identities=False), find_playlists(root)


def init_library(root: Path, force: bool = False) -> tuple[Library, ReconcileResult]:
    """Create an index at root and run a full reconciliation.

    Every file is parsed before the index is created, so an unreadable
    file aborts init without leaving an index or writing any identity.

    Raises:
        SongFileError: If any music file cannot be parsed
        IndexAlreadyExistsError: If root overlaps another library
    """
    root = Path(root).resolve()
    # A missing root is created by LibraryIndex.init and holds no songs yet
    songs, playlists = _scan(root) if root.exists() else ([], [])

    index = LibraryIndex.init(root, force=force)
    library = Library(root=index.root, index=index, songs=songs, playlists=playlists)
    try:
        result = reconcile(library.root, library.songs, index, assign=True)
    except BaseException:
        library.close()
        raise

    logger.info(f"initialized library at '{library.root}' with {len(result.added)} songs")
    return library, result


def open_library(start_dir: Path, config: Optional[Config] = None) -> Library:
    """Open the library governing start_dir and scan it.

    The index is searched for upward from start_dir, bounded by
    ``config.index.search_levels``. No identities are written.

    Raises:
        IndexNotFoundError: If no index exists within the search bound
        SongFileError: If any music file cannot be parsed
    """
    config = config or Config()
    index = LibraryIndex.open(Path(start_dir), max_levels=config.index.search_levels)
    try:
        songs, playlists = _scan(index.root)
    except BaseException:
        index.close()
        raise
    return Library(root=index.root, index=index, songs=songs, playlists=playlists)


def update_library(library: Library, assign_identities: bool = True) -> ReconcileResult:
    """Reconcile the index with the library's current songs."""
    return reconcile(library.root, library.songs, library.index, assign=assign_identities)


def list_tracked(library: Library) -> list[Song]:
    """Scanned songs whose identity has an index entry, in path order."""
    tracked = library.index.with_read_transaction(lambda txn: txn.identities())
    return sorted(
        (song for song in library.songs if song.identity in tracked),
        key=lambda song: str(song.path),
    )


def dump_index(index: LibraryIndex) -> dict[str, dict[str, list[str]]]:
    """Raw index contents keyed by identity, ordered by stored path."""
    entries = index.with_read_transaction(lambda txn: txn.entries())
    ordered = sorted(entries, key=lambda item: item[1].path.segments)
    return {
        str(identity): {"path_segments": list(entry.path.segments)}
        for identity, entry in ordered
    }


def sort_library(
    directory: Path,
    destination: Optional[Path] = None,
    ignore_db: bool = False,
    auto_init: bool = False,
    config: Optional[Config] = None,
) -> SortOutcome:
    """Place every song at its canonical path.

    Without a destination, files are moved inside the library and the index
    is reconciled afterwards (skipped with ignore_db, in which case no index
    is needed). With a destination, files are copied there; auto_init then
    makes the destination an independent library.

    Raises:
        SortError: For conflicting flags or an unusable destination
        LibraryIOError: On the first failed copy or move
    """
    if ignore_db and auto_init:
        raise SortError("unable to both ignore and create an index")
    if auto_init and destination is None:
        raise SortError("auto-init needs a destination directory")

    if ignore_db:
        root = Path(directory).resolve()
        songs = scan_directory(root, assign_identities=False)
        if destination is None:
            return SortOutcome(placement=move_songs(root, songs))
        return SortOutcome(placement=copy_songs(root, songs, Path(destination)))

    with open_library(directory, config) as library:
        if destination is None:
            placement = move_songs(library.root, library.songs)
            reconciled = reconcile(library.root, library.songs, library.index, assign=False)
            return SortOutcome(placement=placement, reconciled=reconciled)

        destination = Path(destination)
        if is_path_within(library.root, destination):
            logger.warning(f"'{destination}' is inside the library at '{library.root}'")
        placement = copy_songs(library.root, library.songs, destination)

    outcome = SortOutcome(placement=placement)
    if auto_init:
        new_library, outcome.reconciled = init_library(destination, force=False)
        outcome.initialized = new_library.root
        new_library.close()
    return outcome
