"""Songbook exceptions for error handling.

Every error carries the path it concerns so a failed command can be
diagnosed from its message alone.
"""

from pathlib import Path
from typing import Optional


class SongbookError(Exception):
    """Base exception for Songbook operations."""

    pass


class ConfigError(SongbookError):
    """Raised when the configuration file is malformed or invalid."""

    def __init__(self, path: Path, message: str):
        self.path = path
        super().__init__(f"invalid configuration in '{path}': {message}")


class SongFileError(SongbookError):
    """Base exception for per-file tag and identity failures."""

    reason = "error reading file"

    def __init__(self, path: Path, detail: Optional[str] = None):
        self.path = Path(path)
        self.detail = detail
        cause = f"{self.reason}: {detail}" if detail else self.reason
        super().__init__(f"failed to read '{self.path}'. {cause}")


class ParseError(SongFileError):
    """Raised when the audio container cannot be parsed."""

    reason = "error parsing file"


class UntaggedError(SongFileError):
    """Raised when a file has no primary tag container."""

    reason = "untagged file"


class WriteFailureError(SongFileError):
    """Raised when the tag container rejects a field."""

    reason = "error writing tags to file"


class SaveError(SongFileError):
    """Raised when modified tags cannot be written back to disk."""

    reason = "error saving tags to file"


class MissingIdentityError(SongFileError):
    """Raised when a file has no identity and assignment is not permitted."""

    reason = "missing identity"


class InvalidIdentityError(SongFileError):
    """Raised when the identity field is present but does not parse."""

    reason = "invalid identity"


class LibraryIndexError(SongbookError):
    """Base exception for index lookup and storage failures."""

    pass


class IndexNotFoundError(LibraryIndexError):
    """Raised when no index exists at or above the starting directory."""

    def __init__(self, start: Path):
        self.start = Path(start)
        super().__init__(f"unable to find a library index in '{self.start}' or its parents")


class IndexAlreadyExistsError(LibraryIndexError):
    """Raised when a new library would overlap an existing one."""

    def __init__(self, existing: Path, target: Path):
        self.existing = Path(existing)
        self.target = Path(target)
        super().__init__(
            f"unable to create a library in '{self.target}' because it overlaps "
            f"the existing index '{self.existing}'"
        )


class IndexTransactionError(LibraryIndexError):
    """Raised when the index store fails inside a transaction."""

    def __init__(self, path: Path, cause: object):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"index transaction failed on '{self.path}': {cause}")


class RelativePathError(SongbookError):
    """Base exception for library-relative path construction."""

    pass


class NotDescendantError(RelativePathError):
    """Raised when a target path is not inside the given root."""

    def __init__(self, root: Path, target: Path):
        self.root = Path(root)
        self.target = Path(target)
        super().__init__(
            f"target is not a descendant of root. target: '{self.target}' root: '{self.root}'"
        )


class InvalidSegmentError(RelativePathError):
    """Raised for empty, traversal or separator-bearing path segments."""

    def __init__(self, segment: str):
        self.segment = segment
        super().__init__(f"invalid path segment {segment!r}")


class LibraryIOError(SongbookError):
    """Raised when a filesystem operation on a library path fails."""

    def __init__(self, path: Path, cause: OSError):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"filesystem error on '{self.path}': {cause}")


class SortError(SongbookError):
    """Raised when a sort request is rejected or cannot place a file."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        super().__init__(message)


class EditorError(SongbookError):
    """Raised when the external editor round-trip fails."""

    def __init__(self, path: Path, message: str):
        self.path = Path(path)
        super().__init__(f"unable to edit '{self.path}': {message}")
