"""
Music library domain models.

Contains data structures for scanned songs and the entries persisted in the
library index.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from uuid import UUID

from songbook.core.database import IndexEntry
from songbook.core.paths import RelativePath

from .tags import TagCodec, open_tags

# The stable identity embedded in a file's metadata
Identity = UUID


@dataclass
class Song:
    """A parsed audio file found by a scan.

    The identity stays None until it has been resolved. Songs are owned by
    the scan that produced them and are never persisted directly.
    """

    path: Path
    tags: TagCodec
    identity: Optional[Identity] = None

    @classmethod
    def parse(cls, path: Path) -> "Song":
        """Read a file's tags without touching its identity field."""
        return cls(path=Path(path), tags=open_tags(path))

    def relative_path(self, root: Path) -> RelativePath:
        return RelativePath.from_paths(root, self.path)

    def to_index_entry(self, root: Path) -> IndexEntry:
        return IndexEntry(path=self.relative_path(root))

    def clean_tags(self) -> bool:
        """Strip blank fields, saving only when something was removed."""
        removed = self.tags.remove_empty()
        if removed:
            self.tags.save(self.path)
        return removed > 0
