"""
Stable song identity stored in a reserved metadata field.

A file keeps its identity across renames and moves, which is what lets the
index follow it. Reading an identified file never rewrites it; a new
identity is written (and saved immediately) only when one is missing and
the caller allows assignment.
"""

import uuid
from pathlib import Path
from typing import Optional

from loguru import logger

from songbook.core.exceptions import (
    InvalidIdentityError,
    MissingIdentityError,
    WriteFailureError,
)

from .models import Identity, Song
from .tags import TagCodec

IDENTITY_FIELD = "identity"


def read_identity(tags: TagCodec, path: Path) -> Optional[Identity]:
    """Return the stored identity, or None when the field is absent.

    A present but blank field is invalid, not absent.

    Raises:
        InvalidIdentityError: If the field is present but not a valid UUID
    """
    raw = tags.get_raw_field(IDENTITY_FIELD)
    if raw is None:
        return None
    try:
        return uuid.UUID(raw.strip())
    except ValueError:
        raise InvalidIdentityError(path, f"'{raw}' is not a valid identity") from None


def write_identity(tags: TagCodec, path: Path) -> Identity:
    """Generate a fresh identity, store it and save the file."""
    identity = uuid.uuid4()
    if not tags.set_field(IDENTITY_FIELD, str(identity)):
        raise WriteFailureError(path, "identity field rejected by the tag container")
    tags.save(path)
    return identity


def resolve_identity(song: Song, assign: bool) -> Identity:
    """Resolve a song's identity, assigning one when missing and permitted.

    The song record is updated in place.

    Raises:
        InvalidIdentityError: Identity field present but unparsable
        MissingIdentityError: No identity and assignment not permitted
        WriteFailureError: Tag container refused the field
        SaveError: The file could not be rewritten
    """
    if song.identity is not None:
        return song.identity

    identity = read_identity(song.tags, song.path)
    if identity is None:
        if not assign:
            raise MissingIdentityError(song.path)
        logger.info(f"writing identity to '{song.path}'")
        identity = write_identity(song.tags, song.path)

    song.identity = identity
    return identity
