"""
Error types raised while renaming media files.

Fatal errors abort the batch before anything is renamed. Everything
deriving from :class:`FileError` concerns a single file: it is caught at
the task boundary, logged, and the file is left untouched.
"""


class MediaRenameError(Exception):
    """Base class for all renaming errors."""


class InvalidInput(MediaRenameError):
    """Bad arguments or an unusable root directory."""


class BackupFailure(MediaRenameError):
    """The safety mirror could not be created."""


class FileError(MediaRenameError):
    """A failure that only affects one file."""
    kind = "FileError"


# Video (atom walker) failures

class UnreadableContainer(FileError):
    kind = "UnreadableContainer"


class UnsupportedCompressedContainer(FileError):
    kind = "UnsupportedCompressedContainer"


class UnsupportedReferenceContainer(FileError):
    kind = "UnsupportedReferenceContainer"


class MovieHeaderNotFound(FileError):
    kind = "MovieHeaderNotFound"


# Image (EXIF) failures

class ExifDecodeFailure(FileError):
    kind = "ExifDecodeFailure"


class NoUsableTimestampField(FileError):
    kind = "NoUsableTimestampField"


class MalformedTimestampField(FileError):
    kind = "MalformedTimestampField"


# Naming and moving

class CollisionBoundExceeded(FileError):
    kind = "CollisionBoundExceeded"


class RenameIOFailure(FileError):
    kind = "RenameIOFailure"
