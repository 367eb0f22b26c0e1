"""Library domain - music files, identities and layout.

This domain handles:
- Tag container access (ID3v2, Vorbis comments)
- Song models and stable identities
- Library scanning
- Canonical file layout (sorting)
- Metadata display and editing
"""

# Models
from .models import Identity, IndexEntry, Song

# Tags
from .tags import TagCodec, open_tags

# Identity
from .identity import IDENTITY_FIELD, read_identity, resolve_identity, write_identity

# Scanning
from .scanner import (
    SUPPORTED_EXTENSIONS,
    find_playlists,
    is_supported_format,
    iter_music_files,
    scan_directory,
)

# Sorting
from .sorter import (
    SortResult,
    canonical_path,
    canonical_path_for,
    copy_songs,
    move_songs,
    sanitize_segment,
)

# Metadata display and editing
from .metadata import ShowResult, describe_song, show_songs, song_to_map
from .editor import EditResult, edit_song, resolve_editor

__all__ = [
    # Models
    "Identity",
    "IndexEntry",
    "Song",
    # Tags
    "TagCodec",
    "open_tags",
    # Identity
    "IDENTITY_FIELD",
    "read_identity",
    "resolve_identity",
    "write_identity",
    # Scanner
    "SUPPORTED_EXTENSIONS",
    "find_playlists",
    "is_supported_format",
    "iter_music_files",
    "scan_directory",
    # Sorter
    "SortResult",
    "canonical_path",
    "canonical_path_for",
    "copy_songs",
    "move_songs",
    "sanitize_segment",
    # Metadata
    "ShowResult",
    "describe_song",
    "show_songs",
    "song_to_map",
    "EditResult",
    "edit_song",
    "resolve_editor",
]
