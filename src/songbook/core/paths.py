"""
Library-relative path handling for Songbook.

A RelativePath is the root-independent form of a file location: the
ordered path segments below a library root. It is what the index stores,
so a library can be moved as a whole without invalidating its entries.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .exceptions import InvalidSegmentError, LibraryIOError, NotDescendantError

_FORBIDDEN_SEGMENTS = {"", ".", ".."}
_SEPARATORS = {"/", "\\", os.sep} | ({os.altsep} if os.altsep else set())


def validate_segment(segment: str) -> str:
    """Return the segment unchanged, or raise if it cannot name a child entry."""
    if not isinstance(segment, str) or segment in _FORBIDDEN_SEGMENTS:
        raise InvalidSegmentError(segment)
    if "\x00" in segment or any(sep in segment for sep in _SEPARATORS):
        raise InvalidSegmentError(segment)
    return segment


def is_path_within(root: Path, target: Path) -> bool:
    """Pure function - checks that target resolves to a descendant of root.

    Symlinks and relative components are resolved before comparing.
    """
    try:
        resolved_root = root.resolve()
        resolved_target = target.resolve()
    except (OSError, RuntimeError):
        # Path.resolve() can raise OSError for invalid paths or RuntimeError for loops
        return False
    if resolved_target == resolved_root:
        return False
    return resolved_target.is_relative_to(resolved_root)


@dataclass(frozen=True)
class RelativePath:
    """Ordered path segments below a library root."""

    segments: tuple[str, ...]

    def __post_init__(self) -> None:
        segments = tuple(self.segments)
        if not segments:
            raise InvalidSegmentError("")
        for segment in segments:
            validate_segment(segment)
        object.__setattr__(self, "segments", segments)

    @classmethod
    def from_segments(cls, segments: Iterable[str]) -> "RelativePath":
        return cls(tuple(segments))

    @classmethod
    def from_paths(cls, root: Path, target: Path) -> "RelativePath":
        """Split target into segments relative to root.

        Both paths are canonicalized first, so they must exist.

        Raises:
            LibraryIOError: If either path cannot be resolved
            NotDescendantError: If target is not below root
        """
        try:
            resolved_root = Path(root).resolve(strict=True)
        except OSError as e:
            raise LibraryIOError(Path(root), e) from e
        try:
            resolved_target = Path(target).resolve(strict=True)
        except OSError as e:
            raise LibraryIOError(Path(target), e) from e

        try:
            relative = resolved_target.relative_to(resolved_root)
        except ValueError:
            raise NotDescendantError(root, target) from None
        if not relative.parts:
            raise NotDescendantError(root, target)
        return cls(relative.parts)

    def rebase(self, root: Path) -> Path:
        """Rejoin the segments onto a root directory."""
        return Path(root).joinpath(*self.segments)

    @property
    def name(self) -> str:
        return self.segments[-1]

    def __str__(self) -> str:
        return "/".join(self.segments)
