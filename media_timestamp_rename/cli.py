#!/usr/bin/env python3
"""
Command-line interface for media_timestamp_rename.
"""

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .config import DEFAULT_DATE_FORMAT, RenameConfig
from .core import MediaTimestampRenamer
from .errors import BackupFailure, InvalidInput

logger = logging.getLogger("media_timestamp_rename")


class _BelowWarning(logging.Filter):
    def filter(self, record):
        return record.levelno < logging.WARNING


def setup_logging(verbose: bool = False) -> None:
    """Send progress to stdout and warnings/errors to stderr."""
    formatter = logging.Formatter("%(asctime)s %(message)s", datefmt="%Y/%m/%d %H:%M:%S")

    out = logging.StreamHandler(sys.stdout)
    out.setFormatter(formatter)
    out.addFilter(_BelowWarning())

    err = logging.StreamHandler(sys.stderr)
    err.setFormatter(formatter)
    err.setLevel(logging.WARNING)

    root = logging.getLogger()
    root.handlers[:] = [out, err]
    root.setLevel(logging.DEBUG if verbose else logging.INFO)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="media_timestamp_rename",
        description="Rename photos and videos in place so they sort by capture time",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  media_timestamp_rename ~/Pictures/2024
  media_timestamp_rename --dry-run /Volumes/SD/DCIM
  media_timestamp_rename ~/Pictures/trip "%Y%m%d_%H%M%S"

The tool will:
1. Copy the directory to a sibling "<directory> - Backup Exif"
2. Read the capture time from EXIF (photos) or the movie header (videos)
3. Rename each file to <timestamp>[-N].<ext>
4. Delete the backup if no media file went missing, otherwise keep it

Supported formats:
  Photos: JPG, JPEG, TIF, BMP, PNG, GIF, CR2, ARW, HEIC, NEF
  Videos: MOV, MP4
        """
    )

    parser.add_argument(
        'directory',
        help='Directory to process (recursively)'
    )

    parser.add_argument(
        'date_format',
        nargs='?',
        default=DEFAULT_DATE_FORMAT,
        help="strftime pattern for new names (default: %(default)r)"
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be renamed without taking a backup or renaming files'
    )

    parser.add_argument(
        '--workers',
        type=int,
        default=RenameConfig().workers,
        help='Number of files processed in parallel (default: %(default)s)'
    )

    parser.add_argument(
        '--collision-max',
        type=int,
        default=RenameConfig().collision_max,
        help='Highest -N suffix tried before giving up on a file (default: %(default)s)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Also log skipped files'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    return parser


def main(argv=None) -> int:
    """Main entry point for the media_timestamp_rename command."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    directory = Path(args.directory).expanduser()
    config = RenameConfig(
        date_format=args.date_format,
        collision_max=args.collision_max,
        workers=args.workers,
        dry_run=args.dry_run,
    )

    try:
        renamer = MediaTimestampRenamer(config)
        report = renamer.run(directory)
    except InvalidInput as e:
        logger.error("Error: %s", e)
        return 1
    except BackupFailure as e:
        logger.error("Backup failed: %s", e)
        return 1
    except KeyboardInterrupt:
        logger.error("Operation cancelled by user.")
        return 130

    logger.info(
        "Completed in %.2fs: %d renamed, %d skipped, %d failed, %d unreadable directories",
        report.elapsed, len(report.renamed), len(report.skipped), len(report.failed),
        len(report.walk_errors),
    )
    return 0


if __name__ == '__main__':
    sys.exit(main())
