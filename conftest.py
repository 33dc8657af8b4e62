import logging
import struct

import pytest
from PIL import Image

from media_timestamp_rename.atoms import APPLE_EPOCH_ADJUSTMENT

DATETIME_TAG = 0x0132


def atom(atom_type: bytes, payload: bytes = b"") -> bytes:
    return struct.pack(">I4s", 8 + len(payload), atom_type) + payload


def mvhd(creation: int) -> bytes:
    # version 0, flags, creation time, modification time, timescale, duration
    return atom(b"mvhd", struct.pack(">B3sIIII", 0, b"\x00\x00\x00", creation, creation, 600, 0))


def movie_bytes(unix_seconds: int, padding: bytes = b"\x00" * 37) -> bytes:
    """ftyp, an opaque skip atom, then moov/mvhd."""
    return (
        atom(b"ftyp", b"isom\x00\x00\x02\x00isomiso2mp41")
        + atom(b"free", padding)
        + atom(b"moov", mvhd(unix_seconds + APPLE_EPOCH_ADJUSTMENT) + atom(b"trak"))
    )


@pytest.fixture
def make_movie():
    def _make(path, unix_seconds):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(movie_bytes(unix_seconds))
        return path
    return _make


@pytest.fixture
def make_jpeg():
    def _make(path, date_time=None):
        path.parent.mkdir(parents=True, exist_ok=True)
        exif = Image.Exif()
        if date_time is not None:
            exif[DATETIME_TAG] = date_time
        Image.new("RGB", (8, 8), "white").save(path, "JPEG", exif=exif.tobytes())
        return path
    return _make


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
