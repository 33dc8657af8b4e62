"""
Immutable configuration shared by every renaming component.
"""

from datetime import datetime
from pathlib import Path
from typing import FrozenSet, NamedTuple

from .errors import InvalidInput

DEFAULT_DATE_FORMAT = "%Y-%m-%d %H.%M.%S"

PICTURE_EXTENSIONS = frozenset(
    ["JPG", "TIF", "BMP", "PNG", "JPEG", "GIF", "CR2", "ARW", "HEIC", "NEF"]
)
MOVIE_EXTENSIONS = frozenset(["MOV", "MP4"])


def extension_of(path) -> str:
    """Return the upper-cased extension of ``path`` without the leading dot."""
    return Path(path).suffix.lstrip(".").upper()


class RenameConfig(NamedTuple):
    """Settings for one renaming batch."""
    date_format: str = DEFAULT_DATE_FORMAT
    picture_extensions: FrozenSet[str] = PICTURE_EXTENSIONS
    movie_extensions: FrozenSet[str] = MOVIE_EXTENSIONS
    collision_max: int = 1000000
    workers: int = 100
    backup_suffix: str = " - Backup Exif"
    dry_run: bool = False

    @property
    def media_extensions(self) -> FrozenSet[str]:
        return self.picture_extensions | self.movie_extensions

    def is_picture(self, path) -> bool:
        return extension_of(path) in self.picture_extensions

    def is_movie(self, path) -> bool:
        return extension_of(path) in self.movie_extensions

    def is_media(self, path) -> bool:
        return extension_of(path) in self.media_extensions

    def validate(self) -> "RenameConfig":
        """
        Check the settings before any work starts.

        The date format must render names that parse back with the same
        format, otherwise already-renamed files could never be recognized
        on a later run.
        """
        if self.workers < 1:
            raise InvalidInput(f"Worker count must be positive, got {self.workers}")
        if self.collision_max < 1:
            raise InvalidInput(f"Collision bound must be positive, got {self.collision_max}")

        reference = datetime(2001, 2, 3, 4, 5, 6)
        try:
            rendered = reference.strftime(self.date_format)
            datetime.strptime(rendered, self.date_format)
        except ValueError as e:
            raise InvalidInput(f"Invalid date format {self.date_format!r}: {e}") from e
        if "/" in rendered or "\\" in rendered:
            raise InvalidInput(f"Date format {self.date_format!r} renders path separators")
        return self
