"""
Working-tree scanner.

Compares the live filesystem against a commit's snapshot to find files that
were modified or deleted. All methods are read-only queries.
"""

import os
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, Set

from loguru import logger

from .models import to_epoch_ns


class WorkingTreeScanner:
    """
    Classifies files in a working tree.

    The repository's private storage directory is never entered.
    """

    def __init__(self, root: Path, storage_dir: Path):
        """
        Initialize the scanner.

        Args:
            root: Absolute path of the working tree
            storage_dir: Absolute path of the private storage directory
        """
        self.root = root
        self.storage_dir = storage_dir

    def walk_files(self) -> Iterator[Path]:
        """Yield every file of the working tree outside the storage directory."""
        for dirpath, dirnames, filenames in os.walk(self.root):
            current = Path(dirpath)
            # Prune in place so os.walk never descends into storage
            dirnames[:] = sorted(
                d for d in dirnames if current / d != self.storage_dir
            )
            for name in sorted(filenames):
                yield current / name

    def updated(self, since: datetime, paths_to_watch: Iterable[str]) -> Set[str]:
        """
        Find watched files modified strictly after ``since``.

        Args:
            since: Reference time (aware datetime)
            paths_to_watch: Absolute paths to consider

        Returns:
            Paths whose last-modified time is later than ``since``
        """
        watched = set(paths_to_watch)
        since_ns = to_epoch_ns(since)
        result: Set[str] = set()
        if not watched:
            return result

        for path in self.walk_files():
            key = str(path)
            if key not in watched:
                continue
            try:
                mtime_ns = path.stat().st_mtime_ns
            except OSError:
                # Vanished or unreadable mid-scan; deleted() reports it
                continue
            if mtime_ns > since_ns:
                result.add(key)

        logger.debug("Scanned for updated files", watched=len(watched), updated=len(result))
        return result

    def deleted(self, path_set: Iterable[str]) -> Set[str]:
        """Return the paths in ``path_set`` that no longer exist on disk."""
        return {p for p in path_set if not os.path.lexists(p)}

    def untracked(self, staged: Iterable[str]) -> Set[str]:
        """Return working-tree files that are not in ``staged``."""
        tracked = set(staged)
        return {str(p) for p in self.walk_files() if str(p) not in tracked}
