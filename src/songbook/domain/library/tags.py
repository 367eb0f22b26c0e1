"""
Tag container access through Mutagen.

Each supported container is wrapped in a small codec exposing the same
get/set/remove/save capability, so identity handling, cleaning and editing
never branch on the file format.
"""

from pathlib import Path
from typing import Optional, Protocol

from mutagen import MutagenError
from mutagen.aac import AAC
from mutagen.flac import FLAC
from mutagen.id3 import ID3, ID3NoHeaderError, TXXX, Frames, TextFrame
from mutagen.mp3 import MP3

from songbook.core.exceptions import ParseError, SaveError, UntaggedError

# Friendly field names -> native ID3 frame keys
ID3_FIELDS = {
    "title": "TIT2",
    "artist": "TPE1",
    "album": "TALB",
    "albumartist": "TPE2",
    "track": "TRCK",
    "disc": "TPOS",
    "genre": "TCON",
    "date": "TDRC",
    "composer": "TCOM",
    "identity": "TXXX:CATALOGNUMBER",
}

# Friendly field names -> native Vorbis comment keys
VORBIS_FIELDS = {
    "title": "TITLE",
    "artist": "ARTIST",
    "album": "ALBUM",
    "albumartist": "ALBUMARTIST",
    "track": "TRACKNUMBER",
    "disc": "DISCNUMBER",
    "genre": "GENRE",
    "date": "DATE",
    "composer": "COMPOSER",
    "identity": "CATALOGNUMBER",
}


def _is_blank(values: list) -> bool:
    return all(str(value).strip() == "" for value in values)


def _frame_text(frame) -> Optional[list]:
    """Text values of a frame, or None for frames that hold no text list."""
    text = getattr(frame, "text", None)
    if not isinstance(text, list):
        return None
    return text


class TagCodec(Protocol):
    """Capability interface over one file's primary tag container."""

    kind: str

    def native_key(self, name: str) -> str: ...
    def get_raw_field(self, name: str) -> Optional[str]: ...
    def get_field(self, name: str) -> Optional[str]: ...
    def set_field(self, name: str, value: str) -> bool: ...
    def remove_field(self, name: str) -> bool: ...
    def remove_empty(self) -> int: ...
    def items(self) -> dict[str, str]: ...
    def save(self, path: Path) -> None: ...


class Id3Codec:
    """ID3v2 tags, used for MP3 and raw AAC streams."""

    kind = "ID3v2"

    def __init__(self, tags: ID3):
        self._tags = tags
        self._reverse = {native: name for name, native in ID3_FIELDS.items()}

    def native_key(self, name: str) -> str:
        """Frame key for a friendly name; other names are taken as frame keys."""
        return ID3_FIELDS.get(name.lower(), name)

    def get_raw_field(self, name: str) -> Optional[str]:
        """First text value of a frame, blank or not. None if there is no frame."""
        text = _frame_text(self._tags.get(self.native_key(name)))
        if not text:
            return None
        return str(text[0])

    def get_field(self, name: str) -> Optional[str]:
        value = self.get_raw_field(name)
        return value if value is not None and value.strip() else None

    def set_field(self, name: str, value: str) -> bool:
        """Set a text frame. Returns False for frames that do not hold text."""
        native = self.native_key(name)
        if native.startswith("TXXX:"):
            desc = native[len("TXXX:"):]
            if not desc:
                return False
            self._tags.setall("TXXX:" + desc, [TXXX(encoding=3, desc=desc, text=[value])])
            return True

        frame_cls = Frames.get(native)
        if frame_cls is None or not issubclass(frame_cls, TextFrame) or native == "TXXX":
            return False
        try:
            self._tags.setall(native, [frame_cls(encoding=3, text=[value])])
        except (ValueError, TypeError):
            return False
        return True

    def remove_field(self, name: str) -> bool:
        native = self.native_key(name)
        if native not in self._tags:
            return False
        self._tags.delall(native)
        return True

    def remove_empty(self) -> int:
        """Drop text frames whose every value is blank."""
        empty = [
            key
            for key, frame in self._tags.items()
            if _frame_text(frame) is not None and _is_blank(frame.text)
        ]
        for key in empty:
            self._tags.delall(key)
        return len(empty)

    def items(self) -> dict[str, str]:
        result = {}
        for key, frame in self._tags.items():
            text = _frame_text(frame)
            if not text:
                continue
            name = self._reverse.get(key, key)
            result[name] = "; ".join(str(part) for part in text)
        return result

    def save(self, path: Path) -> None:
        try:
            self._tags.save(str(path))
        except (MutagenError, OSError) as e:
            raise SaveError(path, str(e)) from e


class VorbisCodec:
    """Vorbis comments, used for FLAC."""

    kind = "VorbisComments"

    def __init__(self, audio: FLAC):
        self._audio = audio
        self._reverse = {native: name for name, native in VORBIS_FIELDS.items()}

    def native_key(self, name: str) -> str:
        # Vorbis comment keys are case-insensitive
        return VORBIS_FIELDS.get(name.lower(), name.upper())

    def get_raw_field(self, name: str) -> Optional[str]:
        values = self._audio.tags.get(self.native_key(name))
        if not values:
            return None
        return values[0]

    def get_field(self, name: str) -> Optional[str]:
        value = self.get_raw_field(name)
        return value if value is not None and value.strip() else None

    def set_field(self, name: str, value: str) -> bool:
        native = self.native_key(name)
        try:
            self._audio.tags[native] = [value]
        except ValueError:
            # Vorbis keys must be printable ASCII without '='
            return False
        return True

    def remove_field(self, name: str) -> bool:
        native = self.native_key(name)
        if native not in self._audio.tags:
            return False
        del self._audio.tags[native]
        return True

    def remove_empty(self) -> int:
        empty = [key for key in self._audio.tags.keys() if _is_blank(self._audio.tags[key])]
        for key in empty:
            del self._audio.tags[key]
        return len(empty)

    def items(self) -> dict[str, str]:
        result = {}
        for key in self._audio.tags.keys():
            native = key.upper()
            name = self._reverse.get(native, native)
            result[name] = "; ".join(self._audio.tags[key])
        return result

    def save(self, path: Path) -> None:
        try:
            self._audio.save(str(path))
        except (MutagenError, OSError) as e:
            raise SaveError(path, str(e)) from e


def _open_mp3(path: Path) -> Id3Codec:
    audio = MP3(str(path))
    if audio.tags is None:
        raise UntaggedError(path)
    return Id3Codec(audio.tags)


def _open_aac(path: Path) -> Id3Codec:
    # AAC has no tag support of its own; ID3v2 is prepended to the stream
    AAC(str(path))
    try:
        tags = ID3(str(path))
    except ID3NoHeaderError:
        raise UntaggedError(path) from None
    return Id3Codec(tags)


def _open_flac(path: Path) -> VorbisCodec:
    audio = FLAC(str(path))
    if audio.tags is None:
        raise UntaggedError(path)
    return VorbisCodec(audio)


_OPENERS = {
    "mp3": _open_mp3,
    "aac": _open_aac,
    "flac": _open_flac,
}


def open_tags(path: Path) -> TagCodec:
    """Parse a file and return a codec over its primary tag container.

    Raises:
        ParseError: If the file cannot be read or has an unsupported extension
        UntaggedError: If the file carries no tag container
    """
    path = Path(path)
    opener = _OPENERS.get(path.suffix[1:])
    if opener is None:
        raise ParseError(path, f"unsupported file type '{path.suffix}'")
    try:
        return opener(path)
    except (MutagenError, OSError) as e:
        raise ParseError(path, str(e)) from e
