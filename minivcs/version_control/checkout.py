"""
Checkout engine.

Rebuilds the working tree from the commit history. A commit only carries
the content that changed relative to its parent, so every tracked path is
restored from the nearest ancestor that stored it.
"""

import os
from pathlib import Path
from typing import AbstractSet, Dict, Optional

from loguru import logger

from .errors import IoError
from .models import Blob, Commit, to_epoch_ns
from .storage import CommitStore


class WorkingTree:
    """
    Mutating operations on the files of a working tree.

    Nothing inside the private storage directory is ever touched.
    """

    def __init__(self, root: Path, storage_dir: Path):
        self.root = root
        self.storage_dir = storage_dir

    def read_file(self, path: str) -> bytes:
        """Read a working-tree file, raising IoError on failure."""
        try:
            return Path(path).read_bytes()
        except OSError as e:
            raise IoError(f"Can not read file {path}: {e}") from e

    def write_blob(self, blob: Blob, mtime_ns: Optional[int] = None) -> None:
        """
        Write a blob's content to its path, creating parent directories.

        Args:
            blob: Content to write
            mtime_ns: Modification time in nanoseconds to stamp on the file
                (default: now)
        """
        target = Path(blob.path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(blob.data)
            if mtime_ns is not None:
                os.utime(target, ns=(mtime_ns, mtime_ns))
        except OSError as e:
            raise IoError(f"Can not write file {blob.path}: {e}") from e

    def delete_file(self, path: str) -> None:
        """Delete a file; a file that is already gone is not an error."""
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise IoError(f"Can not remove file {path}: {e}") from e

    def clear(self, keep: AbstractSet[str] = frozenset()) -> int:
        """
        Delete every file not listed in ``keep`` and prune empty directories.

        The root directory itself and the storage directory are preserved.

        Returns:
            Number of files deleted
        """
        removed = 0
        try:
            for dirpath, dirnames, filenames in os.walk(self.root, topdown=False):
                current = Path(dirpath)
                if current == self.storage_dir or self.storage_dir in current.parents:
                    continue
                for name in filenames:
                    path = current / name
                    if str(path) in keep:
                        continue
                    path.unlink()
                    removed += 1
                for name in dirnames:
                    sub = current / name
                    if sub == self.storage_dir or sub.is_symlink():
                        continue
                    if sub.is_dir() and not any(sub.iterdir()):
                        sub.rmdir()
        except OSError as e:
            raise IoError(f"Can not clear working tree {self.root}: {e}") from e

        if removed:
            logger.warning(f"Removed {removed} file(s) from working tree", root=str(self.root))
        return removed


def find_blob_in_history(
    commit_store: CommitStore, start_hash: str, path: str
) -> Optional[Blob]:
    """Return the most recent stored content of ``path`` reachable from ``start_hash``."""
    for commit in commit_store.iter_ancestors(start_hash):
        blob = commit.find_blob(path)
        if blob is not None:
            return blob
    return None


def restore_snapshot(
    commit_store: CommitStore, target: Commit, tree: WorkingTree
) -> Dict[str, bool]:
    """
    Replace the working tree with the snapshot recorded by ``target``.

    Args:
        commit_store: Store to read ancestor commits from
        target: Commit to reconstruct
        tree: Working tree to rewrite

    Returns:
        Mapping of every snapshot path to whether content was found for it
    """
    pending: Dict[str, bool] = {path: False for path in target.snapshot_index}
    tree.clear()

    remaining = len(pending)
    walked = 0
    for commit in commit_store.iter_ancestors(target.commit_hash):
        if remaining == 0:
            break
        walked += 1
        # Restored files carry the time of the commit that stored them, so
        # they do not show up as modified relative to the target
        stored_at = to_epoch_ns(commit.created_at)
        for blob in commit.blobs:
            if pending.get(blob.path) is False:
                tree.write_blob(blob, mtime_ns=stored_at)
                pending[blob.path] = True
                remaining -= 1

    if remaining:
        logger.warning(
            f"{remaining} tracked path(s) had no stored content",
            commit_hash=target.commit_hash,
        )
    logger.debug(
        "Restored snapshot",
        commit_hash=target.commit_hash,
        files=len(pending) - remaining,
        commits_walked=walked,
    )
    return pending
