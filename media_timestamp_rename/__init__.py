"""
Media Timestamp Rename - rename photos and videos after their capture time.

This package provides functionality to:
- Read creation times from QuickTime/MP4 movie headers
- Read capture dates from EXIF (DateTimeOriginal, then DateTime)
- Rename files in place to sortable timestamp names, with -N suffixes on collisions
- Back up the directory first and drop the backup only when nothing went missing
"""

__version__ = "1.0.0"

from .config import RenameConfig
from .core import BatchReport, FileOutcome, MediaTimestampRenamer

__all__ = ["MediaTimestampRenamer", "RenameConfig", "BatchReport", "FileOutcome"]
