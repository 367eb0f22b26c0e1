"""
Reconciliation between a library scan and its index.

A pass runs four steps in a fixed order:

1. assign identities to songs lacking one (when permitted)
2. add index entries for identities the index has not seen
3. prune entries whose identity no longer appears in the scan
4. strip blank metadata fields from every song

Steps 2 and 3 are separate write transactions. A crash between them leaves
freshly added entries next to not-yet-pruned ones; the next pass repairs
that. Pruning relies on the complete, fully identified song set, so the
steps must not be reordered.
"""

from dataclasses import dataclass, field
from pathlib import Path
from uuid import UUID

from loguru import logger

from songbook.core.database import LibraryIndex
from songbook.core.paths import RelativePath
from songbook.domain.library.identity import resolve_identity
from songbook.domain.library.models import Song


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation pass."""

    assigned: list[Path] = field(default_factory=list)  # Files that received a new identity
    added: list[tuple[UUID, RelativePath]] = field(default_factory=list)
    relocated: list[tuple[UUID, RelativePath, RelativePath]] = field(default_factory=list)  # (id, old, new)
    removed: list[tuple[UUID, RelativePath]] = field(default_factory=list)
    cleaned: list[Path] = field(default_factory=list)  # Files rewritten without blank fields
    missing_identity: list[Path] = field(default_factory=list)  # Excluded from the index
    duplicates: list[tuple[UUID, Path]] = field(default_factory=list)  # Shared an identity, not indexed

    @property
    def index_changed(self) -> bool:
        return bool(self.added or self.relocated or self.removed)


def assign_identities(songs: list[Song], result: ReconcileResult) -> None:
    """Step 1: give every unidentified song an identity."""
    for song in songs:
        if song.identity is None:
            resolve_identity(song, assign=True)
            result.assigned.append(song.path)


def _indexable_songs(songs: list[Song], result: ReconcileResult) -> dict[UUID, Song]:
    """Songs with an identity, first path wins when two share one."""
    indexable: dict[UUID, Song] = {}
    for song in sorted(songs, key=lambda s: str(s.path)):
        if song.identity is None:
            logger.warning(f"unable to add '{song.path}' to the index: missing identity")
            result.missing_identity.append(song.path)
        elif song.identity in indexable:
            logger.warning(
                f"'{song.path}' shares identity {song.identity} with "
                f"'{indexable[song.identity].path}'; not indexed"
            )
            result.duplicates.append((song.identity, song.path))
        else:
            indexable[song.identity] = song
    return indexable


def add_entries(
    root: Path,
    index: LibraryIndex,
    indexable: dict[UUID, Song],
    result: ReconcileResult,
    refresh_paths: bool = True,
) -> None:
    """Step 2: record new identities, and moved ones when refresh_paths is set."""
    with index.write_transaction() as txn:
        for identity, song in indexable.items():
            entry = song.to_index_entry(root)
            if txn.insert_if_absent(identity, entry):
                logger.info(f"adding '{song.path}' to the index")
                result.added.append((identity, entry.path))
                continue

            if not refresh_paths:
                continue
            stored = txn.get(identity)
            if stored is not None and stored.path != entry.path:
                logger.info(f"song {identity} moved from '{stored.path}' to '{entry.path}'")
                txn.put(identity, entry)
                result.relocated.append((identity, stored.path, entry.path))


def prune_stale(index: LibraryIndex, current: set[UUID], result: ReconcileResult) -> None:
    """Step 3: drop entries whose identity was not seen in the scan."""
    with index.write_transaction() as txn:
        stale = txn.identities() - current
        for identity in sorted(stale):
            removed = txn.remove(identity)
            if removed is None:
                continue
            logger.info(f"song with identity '{identity}' no longer exists. Removing '{removed.path}' from the index")
            result.removed.append((identity, removed.path))


def clean_tags(songs: list[Song], result: ReconcileResult) -> None:
    """Step 4: strip blank fields, rewriting only files that had some."""
    for song in songs:
        if song.clean_tags():
            logger.debug(f"removed empty tag fields from '{song.path}'")
            result.cleaned.append(song.path)


def reconcile(
    root: Path,
    songs: list[Song],
    index: LibraryIndex,
    assign: bool = True,
    refresh_paths: bool = True,
) -> ReconcileResult:
    """Synchronize the index with the current song set.

    Args:
        root: Library root the stored paths are relative to
        songs: Songs from the latest scan, updated in place
        index: Open index of the library
        assign: Write identities into songs that lack one
        refresh_paths: Update stored paths of known identities that moved

    Returns:
        ReconcileResult describing every change made

    Raises:
        SongFileError: When identity assignment or a tag rewrite fails
        IndexTransactionError: When a transaction fails; earlier steps stay committed
    """
    result = ReconcileResult()

    if assign:
        assign_identities(songs, result)

    indexable = _indexable_songs(songs, result)
    add_entries(root, index, indexable, result, refresh_paths=refresh_paths)
    prune_stale(index, {song.identity for song in songs if song.identity is not None}, result)
    clean_tags(songs, result)

    logger.debug(
        f"reconciled '{root}': {len(result.added)} added, {len(result.relocated)} relocated, "
        f"{len(result.removed)} removed, {len(result.cleaned)} cleaned"
    )
    return result
