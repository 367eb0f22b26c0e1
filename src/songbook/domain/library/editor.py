"""
Edit song metadata in an external editor.

The editable fields are written to a temporary TOML file, the editor is
run on it, and the result is read back. Malformed TOML offers another
round in the editor instead of discarding the user's changes.
"""

import os
import shlex
import subprocess
import tempfile
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

import tomli_w
from loguru import logger
from rich.prompt import Confirm

from songbook.core.exceptions import EditorError, WriteFailureError

from .identity import IDENTITY_FIELD
from .tags import open_tags

DEFAULT_EDITOR = "vi"


@dataclass
class EditResult:
    """Fields changed and removed by an edit session."""

    changed: dict[str, str] = field(default_factory=dict)
    removed: list[str] = field(default_factory=list)

    @property
    def modified(self) -> bool:
        return bool(self.changed or self.removed)


def resolve_editor(override: Optional[str] = None, configured: Optional[str] = None) -> list[str]:
    """Editor command line: override, then config, then $EDITOR, then vi."""
    command = override or configured or os.environ.get("EDITOR") or DEFAULT_EDITOR
    argv = shlex.split(command)
    if not argv:
        return [DEFAULT_EDITOR]
    return argv


def _ask_edit_again(error: str) -> bool:
    return Confirm.ask(f"{error}\n\nedit again?", default=True)


def _run_editor(argv: list[str], document: Path, song_path: Path) -> None:
    try:
        completed = subprocess.run([*argv, str(document)], check=False)
    except OSError as e:
        raise EditorError(song_path, f"failed to launch '{argv[0]}': {e}") from e
    if completed.returncode != 0:
        raise EditorError(song_path, f"'{argv[0]}' exited with status {completed.returncode}")


def edit_toml(
    document: Path,
    argv: list[str],
    song_path: Path,
    confirm: Callable[[str], bool] = _ask_edit_again,
) -> dict:
    """Run the editor until the document parses or the user gives up."""
    while True:
        _run_editor(argv, document, song_path)
        try:
            return tomllib.loads(document.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            if not confirm(str(e)):
                raise EditorError(song_path, f"malformed metadata: {e}") from e


def diff_fields(original: dict[str, str], edited: dict) -> EditResult:
    """Compare the fields before and after editing."""
    result = EditResult()
    for key, value in edited.items():
        text = value if isinstance(value, str) else str(value)
        if original.get(key) != text:
            result.changed[key] = text
    result.removed = sorted(key for key in original if key not in edited)
    return result


def edit_song(
    path: Path,
    editor: Optional[str] = None,
    configured_editor: Optional[str] = None,
    confirm: Callable[[str], bool] = _ask_edit_again,
) -> EditResult:
    """Round-trip a song's metadata through an external editor.

    The identity field is never offered for editing.

    Raises:
        ParseError, UntaggedError: If the file cannot be read
        EditorError: If the editor fails or the user abandons malformed input
        WriteFailureError: If the tag container rejects an edited field
        SaveError: If the file cannot be rewritten
    """
    path = Path(path)
    tags = open_tags(path)
    original = {key: value for key, value in tags.items().items() if key != IDENTITY_FIELD}

    with tempfile.TemporaryDirectory(prefix="songbook-edit-") as tmpdir:
        document = Path(tmpdir) / f"{path.stem}.toml"
        document.write_text(tomli_w.dumps(dict(sorted(original.items()))), encoding="utf-8")
        edited = edit_toml(document, resolve_editor(editor, configured_editor), path, confirm)

    identity_key = tags.native_key(IDENTITY_FIELD)
    for key in edited:
        if tags.native_key(key) == identity_key:
            raise EditorError(path, f"the '{IDENTITY_FIELD}' field ('{key}') cannot be edited")

    result = diff_fields(original, edited)
    if not result.modified:
        logger.info(f"no changes to '{path}'")
        return result

    for key, value in result.changed.items():
        if not tags.set_field(key, value):
            raise WriteFailureError(path, f"field '{key}' rejected by the tag container")
    for key in result.removed:
        tags.remove_field(key)
    tags.save(path)

    logger.info(f"updated {len(result.changed)} and removed {len(result.removed)} fields in '{path}'")
    return result
