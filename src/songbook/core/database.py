"""
SQLite library index for Songbook

The index is a single file at a fixed name directly under the library root.
It maps each song identity to the path the song had at the last
reconciliation. All access goes through transactions, so readers see either
the state before a write transaction or the state after it.
"""

import json
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional, TypeVar
from uuid import UUID

from loguru import logger

from .exceptions import (
    IndexAlreadyExistsError,
    IndexNotFoundError,
    IndexTransactionError,
    LibraryIOError,
)
from .paths import RelativePath

INDEX_FILENAME = ".songbook.db"

# Index schema version, stored in PRAGMA user_version
SCHEMA_VERSION = 1

# Directory levels below the root searched for a nested index on init
NESTED_SEARCH_DEPTH = 5

T = TypeVar("T")


@dataclass(frozen=True)
class IndexEntry:
    """What the index remembers about one identity: its last known location."""

    path: RelativePath

    def to_bytes(self) -> bytes:
        return json.dumps({"path_segments": list(self.path.segments)}).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "IndexEntry":
        decoded = json.loads(bytes(data).decode("utf-8"))
        return cls(path=RelativePath.from_segments(decoded["path_segments"]))


def find_index(start_dir: Path, max_levels: Optional[int] = None) -> Optional[Path]:
    """Find the nearest index file at or above start_dir.

    Args:
        start_dir: Directory the upward search begins at (inclusive)
        max_levels: Number of directories examined, None for no bound
            besides the filesystem root

    Returns:
        Path to the index file, or None if the search is exhausted
    """
    current = Path(start_dir).resolve()
    candidates = [current, *current.parents]
    if max_levels is not None:
        candidates = candidates[:max_levels]
    for directory in candidates:
        index_path = directory / INDEX_FILENAME
        if index_path.is_file():
            return index_path
    return None


def find_nested_index(root: Path, max_depth: int = NESTED_SEARCH_DEPTH) -> Optional[Path]:
    """Find an index file strictly below root, within max_depth levels."""
    root = Path(root)
    if not root.is_dir():
        return None
    for directory, dirnames, filenames in os.walk(root):
        depth = len(Path(directory).relative_to(root).parts)
        if depth > 0 and INDEX_FILENAME in filenames:
            return Path(directory) / INDEX_FILENAME
        if depth >= max_depth:
            dirnames.clear()
        else:
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
    return None


def _remove_index_files(index_path: Path) -> None:
    # WAL mode keeps two sidecar files next to the database
    for suffix in ("", "-wal", "-shm"):
        candidate = Path(str(index_path) + suffix)
        try:
            candidate.unlink()
        except FileNotFoundError:
            continue
        except OSError as e:
            raise LibraryIOError(candidate, e) from e


def _connect(index_path: Path) -> sqlite3.Connection:
    # Autocommit mode; transactions are opened explicitly below
    conn = sqlite3.connect(index_path, isolation_level=None, timeout=30.0)
    # WAL mode gives readers a consistent snapshot during writes
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA synchronous=FULL")
    return conn


def _create_schema(conn: sqlite3.Connection) -> None:
    conn.execute("BEGIN IMMEDIATE")
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS songs (
            identity BLOB PRIMARY KEY CHECK (length(identity) = 16),
            entry BLOB NOT NULL
        )
        """
    )
    conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
    conn.execute("COMMIT")


class IndexTransaction:
    """Entry operations scoped to one open transaction."""

    def __init__(self, conn: sqlite3.Connection, index_path: Path, writable: bool):
        self._conn = conn
        self._index_path = index_path
        self._writable = writable

    def _execute(self, query: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            return self._conn.execute(query, params)
        except sqlite3.Error as e:
            raise IndexTransactionError(self._index_path, e) from e

    def _require_writable(self) -> None:
        if not self._writable:
            raise IndexTransactionError(self._index_path, "write attempted in a read transaction")

    def get(self, identity: UUID) -> Optional[IndexEntry]:
        """Return the entry for identity, or None."""
        row = self._execute(
            "SELECT entry FROM songs WHERE identity = ?", (identity.bytes,)
        ).fetchone()
        return IndexEntry.from_bytes(row[0]) if row else None

    def insert_if_absent(self, identity: UUID, entry: IndexEntry) -> bool:
        """Insert a new entry. Returns False, changing nothing, if one exists."""
        self._require_writable()
        cursor = self._execute(
            "INSERT OR IGNORE INTO songs (identity, entry) VALUES (?, ?)",
            (identity.bytes, entry.to_bytes()),
        )
        return cursor.rowcount == 1

    def put(self, identity: UUID, entry: IndexEntry) -> None:
        """Insert or replace the entry for identity."""
        self._require_writable()
        self._execute(
            "INSERT INTO songs (identity, entry) VALUES (?, ?) "
            "ON CONFLICT(identity) DO UPDATE SET entry = excluded.entry",
            (identity.bytes, entry.to_bytes()),
        )

    def remove(self, identity: UUID) -> Optional[IndexEntry]:
        """Remove and return the entry for identity, or None if absent."""
        self._require_writable()
        entry = self.get(identity)
        if entry is not None:
            self._execute("DELETE FROM songs WHERE identity = ?", (identity.bytes,))
        return entry

    def entries(self) -> list[tuple[UUID, IndexEntry]]:
        """All (identity, entry) pairs in key order."""
        rows = self._execute("SELECT identity, entry FROM songs ORDER BY identity").fetchall()
        return [(UUID(bytes=bytes(key)), IndexEntry.from_bytes(value)) for key, value in rows]

    def identities(self) -> set[UUID]:
        rows = self._execute("SELECT identity FROM songs").fetchall()
        return {UUID(bytes=bytes(row[0])) for row in rows}

    def __len__(self) -> int:
        return self._execute("SELECT COUNT(*) FROM songs").fetchone()[0]


class LibraryIndex:
    """Open handle on a library's index file."""

    def __init__(self, index_path: Path, conn: sqlite3.Connection):
        self.path = index_path
        self._conn = conn

    @property
    def root(self) -> Path:
        """The library root governed by this index."""
        return self.path.parent

    @classmethod
    def init(cls, root: Path, force: bool = False) -> "LibraryIndex":
        """Create a new, empty index at root.

        With force, an existing index file directly at root is deleted
        first. An index in an ancestor (or below root) is never removed and
        always blocks creation.

        Raises:
            IndexAlreadyExistsError: If the new library would overlap another
        """
        root = Path(root).resolve()
        index_path = root / INDEX_FILENAME
        if force and index_path.exists():
            logger.info(f"removing existing index '{index_path}'")
            _remove_index_files(index_path)

        existing = find_index(root)
        if existing is None:
            existing = find_nested_index(root)
        if existing is not None:
            raise IndexAlreadyExistsError(existing, root)

        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LibraryIOError(root, e) from e

        try:
            conn = _connect(index_path)
            _create_schema(conn)
        except sqlite3.Error as e:
            raise IndexTransactionError(index_path, e) from e

        logger.info(f"created library index '{index_path}'")
        return cls(index_path, conn)

    @classmethod
    def open(cls, start_dir: Path, max_levels: Optional[int] = None) -> "LibraryIndex":
        """Open the nearest existing index at or above start_dir.

        Raises:
            IndexNotFoundError: If no index is found within the search bound
        """
        index_path = find_index(start_dir, max_levels)
        if index_path is None:
            raise IndexNotFoundError(Path(start_dir))

        try:
            conn = _connect(index_path)
            version = conn.execute("PRAGMA user_version").fetchone()[0]
            if version < SCHEMA_VERSION:
                _create_schema(conn)
        except sqlite3.Error as e:
            raise IndexTransactionError(index_path, e) from e

        logger.debug(f"opened library index '{index_path}'")
        return cls(index_path, conn)

    @contextmanager
    def _transaction(self, begin: str, writable: bool) -> Iterator[IndexTransaction]:
        try:
            self._conn.execute(begin)
        except sqlite3.Error as e:
            raise IndexTransactionError(self.path, e) from e

        try:
            yield IndexTransaction(self._conn, self.path, writable)
        except BaseException:
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")
            raise

        try:
            self._conn.execute("COMMIT")
        except sqlite3.Error as e:
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")
            raise IndexTransactionError(self.path, e) from e

    def write_transaction(self):
        """Scope in which all mutations commit together or not at all."""
        return self._transaction("BEGIN IMMEDIATE", writable=True)

    def read_transaction(self):
        """Scope with a consistent, read-only view of the index."""
        return self._transaction("BEGIN", writable=False)

    def with_write_transaction(self, fn: Callable[[IndexTransaction], T]) -> T:
        with self.write_transaction() as txn:
            return fn(txn)

    def with_read_transaction(self, fn: Callable[[IndexTransaction], T]) -> T:
        with self.read_transaction() as txn:
            return fn(txn)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "LibraryIndex":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
