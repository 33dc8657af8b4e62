"""
Safety mirror of the target tree, taken before any file is renamed.

The mirror is a sibling directory named ``<root> - Backup Exif``. After the
batch the number of media files in both trees is compared: equal counts
discard the mirror, anything else keeps it for manual recovery. Only the
counts are compared, so a corrupted or swapped file goes unnoticed.
"""

import enum
import logging
import os
import shutil
from pathlib import Path
from typing import NamedTuple

from .config import RenameConfig
from .errors import BackupFailure

logger = logging.getLogger(__name__)


class Decision(enum.Enum):
    KEEP = "keep"
    DISCARD = "discard"


class BackupVerdict(NamedTuple):
    decision: Decision
    original_count: int
    backup_count: int


def backup_path_for(root: Path, config: RenameConfig) -> Path:
    """Return the sibling directory that mirrors ``root``."""
    root = Path(root).resolve()
    return root.parent / f"{root.name}{config.backup_suffix}"


def snapshot(root: Path, config: RenameConfig) -> Path:
    """
    Copy every file and directory under ``root`` into its backup sibling.

    File contents and permission bits are copied; relative paths are kept.

    Raises:
        BackupFailure: the mirror already exists or any copy failed
    """
    root = Path(root).resolve()
    backup_root = backup_path_for(root, config)

    if os.path.lexists(backup_root):
        raise BackupFailure(f"Backup path already exists: {backup_root}")

    try:
        shutil.copytree(root, backup_root, copy_function=shutil.copy2)
    except (shutil.Error, OSError) as e:
        # backup_root did not exist before the copy
        shutil.rmtree(backup_root, ignore_errors=True)
        raise BackupFailure(f"Backup of {root} failed: {e}") from e

    logger.info("Backup created at: %s", backup_root)
    return backup_root


def _raise(error: OSError) -> None:
    raise error


def count_media_files(directory: Path, config: RenameConfig) -> int:
    """Count files below ``directory`` with a picture or movie extension."""
    count = 0
    for _, _, filenames in os.walk(directory, onerror=_raise):
        count += sum(1 for name in filenames if config.is_media(name))
    return count


def verify(root: Path, backup_root: Path, config: RenameConfig) -> BackupVerdict:
    """
    Compare media file counts between the original tree and its mirror.

    Raises:
        OSError: either tree could not be walked
    """
    original_count = count_media_files(root, config)
    backup_count = count_media_files(backup_root, config)
    if original_count == backup_count:
        decision = Decision.DISCARD
    else:
        decision = Decision.KEEP
    return BackupVerdict(decision, original_count, backup_count)


def finalize(root: Path, backup_root: Path, config: RenameConfig) -> BackupVerdict:
    """Verify the batch and delete the mirror when the counts match."""
    verdict = verify(root, backup_root, config)
    if verdict.decision is Decision.DISCARD:
        shutil.rmtree(backup_root)
        logger.info(
            "Backup removed: %s (counts matched: %d)", backup_root, verdict.original_count
        )
    else:
        logger.warning(
            "Backup retained due to mismatch: %s (Original: %d, Backup: %d)",
            backup_root, verdict.original_count, verdict.backup_count,
        )
    return verdict
