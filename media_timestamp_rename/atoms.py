"""
Creation-time extraction from QuickTime/MP4 containers.

Only the top-level atom sequence is scanned: atoms are skipped until the
movie resource atom (``moov``) is found, and its first child must be the
movie header (``mvhd``) holding the creation time.
"""

import struct
from datetime import datetime, timezone
from typing import BinaryIO, Tuple

from .errors import (
    MovieHeaderNotFound,
    UnreadableContainer,
    UnsupportedCompressedContainer,
    UnsupportedReferenceContainer,
)

# Seconds between 1904-01-01 (container epoch) and 1970-01-01
APPLE_EPOCH_ADJUSTMENT = 2082844800

MOVIE_RESOURCE_ATOM = b"moov"
MOVIE_HEADER_ATOM = b"mvhd"
COMPRESSED_MOVIE_ATOM = b"cmov"
REFERENCE_MOVIE_ATOM = b"rmra"

HEADER_SIZE = 8


def _read_exact(stream: BinaryIO, count: int) -> bytes:
    data = stream.read(count)
    if len(data) != count:
        raise UnreadableContainer(
            f"Unexpected end of stream (wanted {count} bytes, got {len(data)})"
        )
    return data


def read_atom_header(stream: BinaryIO) -> Tuple[int, bytes, int]:
    """
    Read one atom header.

    Returns:
        (size, type, header_length). ``size`` counts the header itself and is
        0 for an atom that extends to the end of the file.
    """
    size, atom_type = struct.unpack(">I4s", _read_exact(stream, HEADER_SIZE))
    header_length = HEADER_SIZE
    if size == 1:
        # 64-bit extended size follows the type
        size, = struct.unpack(">Q", _read_exact(stream, 8))
        header_length += 8
    if size != 0 and size < header_length:
        raise UnreadableContainer(
            f"Implausible size {size} for atom {atom_type!r}"
        )
    return size, atom_type, header_length


def find_movie_resource(stream: BinaryIO) -> None:
    """Advance ``stream`` to just past the ``moov`` header."""
    while True:
        size, atom_type, header_length = read_atom_header(stream)
        if atom_type == MOVIE_RESOURCE_ATOM:
            return
        if size == 0:
            raise UnreadableContainer(
                f"Atom {atom_type!r} runs to end of file before any movie resource atom"
            )
        try:
            stream.seek(size - header_length, 1)
        except (OSError, OverflowError, ValueError) as e:
            raise UnreadableContainer(f"Cannot skip atom {atom_type!r}: {e}") from e


def read_creation_time(stream: BinaryIO) -> datetime:
    """
    Extract the creation timestamp from a QuickTime/MP4 byte stream.

    Args:
        stream: Seekable binary stream positioned at the start of the container

    Returns:
        Timezone-aware datetime in the local timezone

    Raises:
        UnreadableContainer: the stream ends or holds an impossible atom size
        UnsupportedCompressedContainer: the movie resource is compressed
        UnsupportedReferenceContainer: the file is a reference movie
        MovieHeaderNotFound: the movie resource does not start with ``mvhd``
    """
    find_movie_resource(stream)
    _, child_type, _ = read_atom_header(stream)

    if child_type == COMPRESSED_MOVIE_ATOM:
        raise UnsupportedCompressedContainer("Compressed video")
    if child_type == REFERENCE_MOVIE_ATOM:
        raise UnsupportedReferenceContainer("Reference video")
    if child_type != MOVIE_HEADER_ATOM:
        raise MovieHeaderNotFound(
            f"Did not find movie header atom (mvhd), found {child_type!r}"
        )

    window = _read_exact(stream, 8)
    version = window[0]
    if version == 1:
        # Version 1 headers store 64-bit times
        creation, = struct.unpack(">Q", window[4:] + _read_exact(stream, 4))
    else:
        creation, = struct.unpack(">I", window[4:])

    try:
        return datetime.fromtimestamp(
            creation - APPLE_EPOCH_ADJUSTMENT, tz=timezone.utc
        ).astimezone()
    except (OverflowError, OSError, ValueError) as e:
        raise UnreadableContainer(f"Creation time {creation} out of range: {e}") from e
