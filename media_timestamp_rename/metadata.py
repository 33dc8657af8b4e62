"""
Timestamp resolution for picture and movie files.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Mapping, NamedTuple

import exifread
from PIL import Image, UnidentifiedImageError
from PIL.ExifTags import TAGS

from .atoms import read_creation_time
from .config import RenameConfig, extension_of
from .errors import (
    ExifDecodeFailure,
    FileError,
    MalformedTimestampField,
    NoUsableTimestampField,
    UnreadableContainer,
)

logger = logging.getLogger(__name__)

EXIF_TIMESTAMP_FORMAT = "%Y:%m:%d %H:%M:%S"
TIMESTAMP_FIELDS = ("DateTimeOriginal", "DateTime")

# Pointer to the Exif sub-IFD, where DateTimeOriginal lives
EXIF_IFD_POINTER = 0x8769


class MediaInfo(NamedTuple):
    """Timestamp and original extension of a media file."""
    path: Path
    timestamp: datetime
    extension: str


def _read_pillow_tags(filepath: Path) -> Dict[str, str]:
    with Image.open(filepath) as img:
        exif = img.getexif()
        tags = {}
        for tag_id, value in exif.items():
            tags[TAGS.get(tag_id, str(tag_id))] = value
        for tag_id, value in exif.get_ifd(EXIF_IFD_POINTER).items():
            tags[TAGS.get(tag_id, str(tag_id))] = value
    return tags


def _read_exifread_tags(filepath: Path) -> Dict[str, str]:
    with open(filepath, "rb") as f:
        raw = exifread.process_file(f, details=False)
    tags = {}
    # exifread keys look like "EXIF DateTimeOriginal" or "Image DateTime"
    for key, value in raw.items():
        tags.setdefault(key.split(" ", 1)[-1], str(value))
    return tags


def read_exif_tags(filepath: Path) -> Dict[str, str]:
    """
    Decode EXIF data into a mapping of tag name to value.

    Pillow is tried first; files it cannot open (most RAW formats, HEIC
    without a plugin) or that carry no timestamp through it are re-read
    with exifread.
    """
    filepath = Path(filepath)
    tags: Dict[str, str] = {}
    pillow_error = None

    try:
        tags = _read_pillow_tags(filepath)
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        pillow_error = e
        logger.debug("Pillow could not read %s: %s", filepath, e)

    if not any(field in tags for field in TIMESTAMP_FIELDS):
        try:
            fallback = _read_exifread_tags(filepath)
        except OSError as e:
            raise ExifDecodeFailure(f"Could not read EXIF data: {e}") from e
        except Exception as e:
            # exifread reports damaged tag data with assorted exception types
            raise ExifDecodeFailure(f"Could not decode EXIF data: {e}") from e
        if not fallback and pillow_error is not None:
            raise ExifDecodeFailure(f"Could not decode EXIF data: {pillow_error}")
        for name, value in fallback.items():
            tags.setdefault(name, value)

    return tags


def parse_exif_timestamp(value) -> datetime:
    """
    Parse a ``YYYY:MM:DD HH:MM:SS`` value as local time.

    The wall clock is kept as written, even inside a DST gap.
    """
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="replace")
    text = str(value).strip().rstrip("\x00").strip()
    try:
        naive = datetime.strptime(text, EXIF_TIMESTAMP_FORMAT)
        return naive.replace(tzinfo=naive.astimezone().tzinfo)
    except (ValueError, OverflowError, OSError) as e:
        raise MalformedTimestampField(f"Failed to parse EXIF date {text!r}: {e}") from e


def timestamp_from_tags(tags: Mapping[str, object]) -> datetime:
    """Pick DateTimeOriginal, falling back to DateTime."""
    for field in TIMESTAMP_FIELDS:
        if field in tags:
            return parse_exif_timestamp(tags[field])
    raise NoUsableTimestampField("No suitable EXIF date field found")


def read_movie_timestamp(filepath: Path) -> datetime:
    try:
        with open(filepath, "rb") as f:
            return read_creation_time(f)
    except OSError as e:
        raise UnreadableContainer(f"Could not open movie file: {e}") from e


def resolve(filepath: Path, config: RenameConfig) -> MediaInfo:
    """
    Resolve the capture timestamp of a media file.

    Raises:
        FileError: one of the per-file metadata failures
    """
    filepath = Path(filepath)
    extension = extension_of(filepath)

    if extension in config.movie_extensions:
        timestamp = read_movie_timestamp(filepath)
    elif extension in config.picture_extensions:
        timestamp = timestamp_from_tags(read_exif_tags(filepath))
    else:
        raise FileError(f"Unsupported file type: {filepath.suffix}")

    return MediaInfo(path=filepath, timestamp=timestamp, extension=filepath.suffix[1:])
