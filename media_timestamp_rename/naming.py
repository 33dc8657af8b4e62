"""
Timestamp-based file naming with collision handling.
"""

import logging
import os
import re
import threading
from datetime import datetime
from pathlib import Path
from typing import Set

from .config import RenameConfig
from .errors import CollisionBoundExceeded, RenameIOFailure

logger = logging.getLogger(__name__)

COLLISION_SUFFIX = re.compile(r"-\d+$")


def _parses(text: str, date_format: str) -> bool:
    try:
        datetime.strptime(text, date_format)
    except ValueError:
        return False
    return True


def is_formatted_name(stem: str, date_format: str) -> bool:
    """
    Check whether a base name (without extension) is already a rendered
    timestamp, optionally followed by a ``-N`` collision suffix.
    """
    if _parses(stem, date_format):
        return True
    unsuffixed = COLLISION_SUFFIX.sub("", stem)
    return unsuffixed != stem and _parses(unsuffixed, date_format)


class NameResolver:
    """
    Chooses free target names and moves files onto them.

    Choosing a name and moving the file happen under one lock, so two
    workers can never claim the same free candidate.
    """

    def __init__(self, config: RenameConfig):
        self.config = config
        self._lock = threading.Lock()
        # Names handed out during this batch (only consulted in dry-run mode,
        # where nothing lands on disk)
        self._claimed: Set[Path] = set()

    def render(self, timestamp: datetime) -> str:
        """Format ``timestamp`` with the configured date format."""
        return timestamp.strftime(self.config.date_format)

    def _taken(self, candidate: Path) -> bool:
        """True when ``candidate`` exists on disk or was already handed out."""
        return candidate in self._claimed or os.path.lexists(candidate)

    def resolve(self, timestamp: datetime, directory: Path, extension: str) -> Path:
        """
        Find the first free path for ``timestamp`` in ``directory``.

        Tries ``<name>.<ext>`` then ``<name>-1.<ext>``, ``<name>-2.<ext>`` and
        so on up to the configured collision bound.
        """
        directory = Path(directory)
        name = self.render(timestamp)
        suffix = f".{extension}" if extension else ""

        candidate = directory / f"{name}{suffix}"
        if not self._taken(candidate):
            return candidate
        for i in range(1, self.config.collision_max):
            candidate = directory / f"{name}-{i}{suffix}"
            if not self._taken(candidate):
                return candidate
        raise CollisionBoundExceeded(
            f"No available filename for {name}{suffix} after {self.config.collision_max} attempts"
        )

    def rename(self, source: Path, timestamp: datetime, extension: str) -> Path:
        """
        Move ``source`` to the first free timestamped name next to it.

        Returns the target path, or ``source`` unchanged when the file already
        carries its computed name.
        """
        source = Path(source)
        extension = extension.lower()
        with self._lock:
            desired = source.with_name(f"{self.render(timestamp)}.{extension}")
            if desired.name == source.name:
                return source

            target = self.resolve(timestamp, source.parent, extension)
            if self.config.dry_run:
                self._claimed.add(target)
                return target

            try:
                os.rename(source, target)
            except OSError as e:
                raise RenameIOFailure(f"Could not rename {source} to {target}: {e}") from e
        return target
