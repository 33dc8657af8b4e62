"""
Core functionality for renaming media files after their capture time.
"""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed, wait
from pathlib import Path
from typing import List, NamedTuple, Optional, Tuple

from . import backup, metadata
from .backup import BackupVerdict
from .config import RenameConfig
from .errors import FileError, InvalidInput
from .naming import NameResolver, is_formatted_name

logger = logging.getLogger(__name__)

RENAMED = "renamed"
SKIPPED = "skipped"
FAILED = "failed"


class FileOutcome(NamedTuple):
    """Result of one per-file task."""
    source: Path
    status: str
    target: Optional[Path] = None
    error: Optional[FileError] = None


class BatchReport(NamedTuple):
    """Summary of a whole batch."""
    outcomes: List[FileOutcome]
    walk_errors: List[OSError]
    verdict: Optional[BackupVerdict]
    elapsed: float

    def _with_status(self, status: str) -> List[FileOutcome]:
        return [o for o in self.outcomes if o.status == status]

    @property
    def renamed(self) -> List[FileOutcome]:
        return self._with_status(RENAMED)

    @property
    def skipped(self) -> List[FileOutcome]:
        return self._with_status(SKIPPED)

    @property
    def failed(self) -> List[FileOutcome]:
        return self._with_status(FAILED)


class MediaTimestampRenamer:
    """
    Renames every picture and movie below a directory to its capture time.

    Features:
    - Reads QuickTime/MP4 creation times and EXIF capture dates
    - Skips files whose names are already rendered timestamps
    - Appends -1, -2, ... when several files share a timestamp
    - Mirrors the tree before renaming and drops the mirror only when
      no media file went missing
    """

    def __init__(self, config: Optional[RenameConfig] = None):
        """
        Initialize the renamer.

        Args:
            config: Batch settings; defaults are used when omitted
        """
        self.config = (config or RenameConfig()).validate()
        self.names = NameResolver(self.config)

    def enumerate_files(self, root: Path) -> Tuple[List[Path], List[OSError]]:
        """
        List media files below ``root``.

        Unreadable subdirectories are logged and skipped; their errors are
        returned alongside the file list.
        """
        files: List[Path] = []
        errors: List[OSError] = []

        def record(error: OSError) -> None:
            logger.error("Could not read %s: %s", error.filename, error)
            errors.append(error)

        for dirpath, dirnames, filenames in os.walk(root, onerror=record):
            dirnames.sort()
            for name in sorted(filenames):
                if self.config.is_media(name):
                    files.append(Path(dirpath) / name)
        return files, errors

    def needs_rename(self, filepath: Path) -> bool:
        return not is_formatted_name(filepath.stem, self.config.date_format)

    def process_file(self, filepath: Path) -> FileOutcome:
        """
        Resolve, name and move a single file.

        Never raises for per-file problems: they come back as a failed outcome.
        """
        try:
            info = metadata.resolve(filepath, self.config)
            target = self.names.rename(filepath, info.timestamp, info.extension)
        except FileError as e:
            logger.error("%s: %s [%s]", filepath, e, e.kind)
            return FileOutcome(filepath, FAILED, error=e)
        except Exception as e:
            logger.exception("Unexpected error processing %s", filepath)
            return FileOutcome(filepath, FAILED, error=FileError(str(e)))

        if target == filepath:
            logger.debug("%s already carries its timestamp, skipping.", filepath.name)
            return FileOutcome(filepath, SKIPPED, target=target)

        verb = "Would rename" if self.config.dry_run else "Renamed"
        logger.info("%s %s => %s", verb, filepath.name, target.name)
        return FileOutcome(filepath, RENAMED, target=target)

    def process_files(self, filepaths: List[Path]) -> List[FileOutcome]:
        """
        Run ``process_file`` over ``filepaths`` on the worker pool.

        A KeyboardInterrupt stops tasks that have not started yet; renames
        already running are allowed to finish before it propagates.
        """
        outcomes: List[FileOutcome] = []
        pending: List[Path] = []
        for filepath in filepaths:
            if self.needs_rename(filepath):
                pending.append(filepath)
            else:
                logger.debug("%s is already in desired date format, skipping.", filepath.name)
                outcomes.append(FileOutcome(filepath, SKIPPED, target=filepath))

        if not pending:
            return outcomes

        executor = ThreadPoolExecutor(max_workers=min(self.config.workers, len(pending)))
        futures = [executor.submit(self.process_file, filepath) for filepath in pending]
        try:
            for future in as_completed(futures):
                outcomes.append(future.result())
        except KeyboardInterrupt:
            for future in futures:
                future.cancel()
            wait(futures)
            raise
        finally:
            executor.shutdown(wait=True)
        return outcomes

    def process_directory(self, root: Path) -> BatchReport:
        """Rename every media file below ``root`` without taking a backup."""
        started = time.monotonic()
        root = self._check_root(root)
        files, walk_errors = self.enumerate_files(root)
        outcomes = self.process_files(files)
        return BatchReport(outcomes, walk_errors, None, time.monotonic() - started)

    def run(self, root: Path) -> BatchReport:
        """
        Back up ``root``, rename its media files, then verify the backup.

        Raises:
            InvalidInput: ``root`` is not a readable directory
            BackupFailure: the mirror could not be created
        """
        started = time.monotonic()
        root = self._check_root(root)

        if self.config.dry_run:
            logger.info("Dry run: no backup is taken and no file is renamed.")
            backup_root = None
        else:
            backup_root = backup.snapshot(root, self.config)

        files, walk_errors = self.enumerate_files(root)
        logger.info("Found %d media files under %s", len(files), root)
        outcomes = self.process_files(files)

        verdict = None
        if backup_root is not None:
            try:
                verdict = backup.finalize(root, backup_root, self.config)
            except OSError as e:
                logger.error("Error counting files, backup kept at %s: %s", backup_root, e)

        return BatchReport(outcomes, walk_errors, verdict, time.monotonic() - started)

    def _check_root(self, root: Path) -> Path:
        root = Path(root).resolve()
        if not root.is_dir():
            raise InvalidInput(f"Path does not exist or is not a directory: {root}")
        try:
            os.listdir(root)
        except OSError as e:
            raise InvalidInput(f"Cannot read directory {root}: {e}") from e
        return root
