"""Shared fixtures: small but real audio files for Mutagen to parse."""

import struct
from pathlib import Path
from typing import Optional

import pytest
from mutagen.flac import FLAC
from mutagen.id3 import ID3, TALB, TCON, TIT2, TPE1, TXXX

# MPEG-1 Layer III, 128 kbps, 44.1 kHz, joint stereo: 417-byte frames
MP3_FRAME = b"\xff\xfb\x90\x64" + b"\x00" * 413
MP3_FRAME_COUNT = 20


def _flac_stream() -> bytes:
    """fLaC marker plus a single STREAMINFO block (44.1 kHz, stereo, 16 bit)."""
    packed = (44100 << 44) | (1 << 41) | (15 << 36)
    streaminfo = (
        struct.pack(">HH", 4096, 4096)
        + b"\x00\x00\x00"  # min frame size
        + b"\x00\x00\x00"  # max frame size
        + packed.to_bytes(8, "big")
        + b"\x00" * 16  # MD5
    )
    header = bytes([0x80]) + len(streaminfo).to_bytes(3, "big")
    return b"fLaC" + header + streaminfo


def write_mp3(
    path: Path,
    title: Optional[str] = "Song",
    artist: Optional[str] = None,
    album: Optional[str] = None,
    identity: Optional[str] = None,
    extra: Optional[dict] = None,
) -> Path:
    """Write an MP3 with an ID3v2 tag holding the given fields."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(MP3_FRAME * MP3_FRAME_COUNT)

    tags = ID3()
    if title is not None:
        tags.add(TIT2(encoding=3, text=[title]))
    if artist is not None:
        tags.add(TPE1(encoding=3, text=[artist]))
    if album is not None:
        tags.add(TALB(encoding=3, text=[album]))
    if identity is not None:
        tags.add(TXXX(encoding=3, desc="CATALOGNUMBER", text=[identity]))
    for frame in (extra or {}).values():
        tags.add(frame)
    tags.save(str(path))
    return path


def write_flac(
    path: Path,
    title: Optional[str] = "Song",
    artist: Optional[str] = None,
    album: Optional[str] = None,
    identity: Optional[str] = None,
    extra: Optional[dict] = None,
) -> Path:
    """Write a FLAC stream carrying Vorbis comments for the given fields."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(_flac_stream())

    audio = FLAC(str(path))
    audio.add_tags()
    fields = {"TITLE": title, "ARTIST": artist, "ALBUM": album, "CATALOGNUMBER": identity}
    fields.update(extra or {})
    for key, value in fields.items():
        if value is not None:
            audio.tags[key] = [value]
    audio.save()
    return path


@pytest.fixture
def make_mp3():
    """Factory for tagged MP3 files."""
    return write_mp3


@pytest.fixture
def make_flac():
    """Factory for tagged FLAC files."""
    return write_flac


@pytest.fixture
def make_untagged():
    """Factory for MP3 files without any tag."""

    def make(path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(MP3_FRAME * MP3_FRAME_COUNT)
        return path

    return make


@pytest.fixture
def make_garbage():
    """Factory for files with a music extension but no audio inside."""

    def make(path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"this is not audio\n" * 64)
        return path

    return make


@pytest.fixture
def library_dir(tmp_path, make_mp3):
    """A directory with three untracked, tagged songs."""
    root = tmp_path / "music"
    make_mp3(root / "one.mp3", title="One", artist="Artist A", album="Album B")
    make_mp3(root / "nested" / "two.mp3", title="Two", artist="Artist A")
    make_mp3(root / "three.mp3", title=None, extra={"genre": TCON(encoding=3, text=["Jazz"])})
    return root
