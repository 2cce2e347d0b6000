"""
Storage backend for version control.

Handles persistence of repository metadata and commit records to disk.
"""

import os
import tempfile
from pathlib import Path
from typing import Iterator, List, Optional

from loguru import logger

from .errors import NotFoundError, StoreError
from .models import Commit, RepositoryMetadata


def _atomic_write(path: Path, text: str) -> None:
    """Write ``text`` to ``path`` via a temp file and rename."""
    fd, tmp_path = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", text=True
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise


class MetadataStore:
    """
    File-based store for the single repository metadata record.

    Nothing is cached: every call to ``load`` reads the file again, so the
    file on disk is the only authoritative copy.
    """

    def __init__(self, storage_dir: Path):
        """
        Initialize the store.

        Args:
            storage_dir: Private storage directory of the repository
        """
        self.storage_dir = storage_dir
        self.info_file = storage_dir / "info.json"

    def exists(self) -> bool:
        return self.info_file.is_file()

    def load(self) -> RepositoryMetadata:
        """
        Load repository metadata.

        Raises:
            StoreError: If the metadata file is missing, unreadable or corrupt
        """
        try:
            text = self.info_file.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise StoreError(
                f"No repository found at {self.storage_dir.parent} (missing {self.info_file.name})"
            ) from e
        except OSError as e:
            raise StoreError(f"Can not read metadata file {self.info_file}: {e}") from e

        try:
            return RepositoryMetadata.from_json(text)
        except (ValueError, KeyError, TypeError) as e:
            raise StoreError(f"Metadata file {self.info_file} is corrupt: {e}") from e

    def save(self, metadata: RepositoryMetadata) -> None:
        """
        Persist repository metadata.

        The current branch is re-pointed at the head commit before writing.

        Raises:
            StoreError: If the metadata file can not be written
        """
        metadata.sync_current_branch()
        try:
            _atomic_write(self.info_file, metadata.to_json())
        except OSError as e:
            raise StoreError(f"Can not write metadata file {self.info_file}: {e}") from e

        logger.debug(
            "Saved repository metadata",
            branch=metadata.current_branch,
            head=metadata.head_hash,
            staged=len(metadata.staged_paths),
        )


class CommitStore:
    """
    File-based store for immutable commit records.

    Stores commits as JSON files:
    - <storage_dir>/
      - commits/
        - {commit_hash}.json
    """

    def __init__(self, storage_dir: Path):
        """
        Initialize the store.

        Args:
            storage_dir: Private storage directory of the repository
        """
        self.commits_dir = storage_dir / "commits"

    def _commit_file(self, commit_hash: str) -> Path:
        return self.commits_dir / f"{commit_hash}.json"

    def ensure_directories(self) -> None:
        """Ensure the commits directory exists."""
        try:
            self.commits_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Can not create {self.commits_dir}: {e}") from e

    def contains(self, commit_hash: str) -> bool:
        """Check whether a commit record exists for ``commit_hash``."""
        # Reject anything that could escape the commits directory
        if not commit_hash or "/" in commit_hash or "\\" in commit_hash:
            return False
        if commit_hash.startswith("."):
            return False
        return self._commit_file(commit_hash).is_file()

    def put(self, commit: Commit) -> None:
        """
        Save a commit.

        Commits are write-once; saving a hash that already exists is a no-op
        because identical hashes mean identical payloads.

        Raises:
            StoreError: If the record can not be written
        """
        commit_file = self._commit_file(commit.commit_hash)
        if commit_file.exists():
            logger.debug("Commit already stored", commit_hash=commit.commit_hash)
            return

        try:
            _atomic_write(commit_file, commit.to_json())
        except OSError as e:
            raise StoreError(f"Can not write commit {commit.commit_hash}: {e}") from e

    def find(self, commit_hash: str) -> Optional[Commit]:
        """
        Load a commit if it exists.

        Returns:
            Commit if found, None otherwise
        """
        if not self.contains(commit_hash):
            return None
        return self.get(commit_hash)

    def get(self, commit_hash: str) -> Commit:
        """
        Load a commit.

        Raises:
            NotFoundError: If no record exists for ``commit_hash``
            StoreError: If the record can not be read or decoded
        """
        if not self.contains(commit_hash):
            raise NotFoundError(f"Commit {commit_hash} not found")

        commit_file = self._commit_file(commit_hash)
        try:
            return Commit.from_json(commit_file.read_text(encoding="utf-8"))
        except OSError as e:
            raise StoreError(f"Can not read commit {commit_hash}: {e}") from e
        except (ValueError, KeyError, TypeError) as e:
            raise StoreError(f"Commit {commit_hash} is corrupt: {e}") from e

    def list_hashes(self) -> List[str]:
        """List all stored commit hashes."""
        if not self.commits_dir.is_dir():
            return []
        return sorted(f.stem for f in self.commits_dir.glob("*.json"))

    def iter_ancestors(self, start_hash: str) -> Iterator[Commit]:
        """
        Walk the parent chain starting at ``start_hash`` (inclusive).

        Yields nothing when ``start_hash`` is empty.
        """
        commit_hash = start_hash
        while commit_hash:
            commit = self.get(commit_hash)
            yield commit
            commit_hash = commit.parent_hash
