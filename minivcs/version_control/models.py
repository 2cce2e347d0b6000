"""
Data model for version control.

Defines the immutable commit record, the blobs it carries, and the mutable
repository metadata (current branch, branch heads and the staged index).
"""

import base64
import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, FrozenSet, Iterable, Optional, Set, Tuple


@dataclass(frozen=True)
class Blob:
    """Raw content of one file as it was when a commit recorded it."""

    path: str
    data: bytes

    def to_dict(self) -> Dict[str, Any]:
        """Convert blob to dictionary for serialization."""
        return {
            "path": self.path,
            "data": base64.b64encode(self.data).decode("ascii"),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Blob":
        """Create blob from dictionary."""
        return cls(path=data["path"], data=base64.b64decode(data["data"]))


@dataclass(frozen=True)
class Commit:
    """
    Represents a commit in the version history.

    A commit stores the full set of tracked paths (``snapshot_index``) but only
    the content of the paths that changed relative to its parent. Content for
    any other tracked path lives in the nearest ancestor that changed it.

    Attributes:
        commit_hash: Digest of the commit payload (see compute_commit_hash)
        branch: Branch that was current when the commit was made
        parent_hash: Parent commit hash, "" for the root commit
        timestamp: ISO-8601 UTC creation time
        generation: Number of ancestors; the root commit has generation 0
        message: Commit message
        snapshot_index: Every path tracked as of this commit
        changed_paths: Paths whose content is stored in this commit
        blobs: Content of changed_paths, sorted by path
    """

    commit_hash: str
    branch: str
    parent_hash: str
    timestamp: str
    generation: int
    message: str
    snapshot_index: FrozenSet[str]
    changed_paths: FrozenSet[str]
    blobs: Tuple[Blob, ...] = field(default_factory=tuple)

    @property
    def created_at(self) -> datetime:
        """Creation time as an aware datetime."""
        return datetime.fromisoformat(self.timestamp)

    @property
    def is_root(self) -> bool:
        return not self.parent_hash

    def find_blob(self, path: str) -> Optional[Blob]:
        """Return the blob stored for ``path`` in this commit, if any."""
        for blob in self.blobs:
            if blob.path == path:
                return blob
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert commit to dictionary for serialization."""
        return {
            "commit_hash": self.commit_hash,
            "branch": self.branch,
            "parent_hash": self.parent_hash,
            "timestamp": self.timestamp,
            "generation": self.generation,
            "message": self.message,
            "snapshot_index": sorted(self.snapshot_index),
            "changed_paths": sorted(self.changed_paths),
            "blobs": [blob.to_dict() for blob in self.blobs],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Commit":
        """Create commit from dictionary."""
        return cls(
            commit_hash=data["commit_hash"],
            branch=data["branch"],
            parent_hash=data.get("parent_hash", ""),
            timestamp=data["timestamp"],
            generation=data.get("generation", 0),
            message=data["message"],
            snapshot_index=frozenset(data["snapshot_index"]),
            changed_paths=frozenset(data["changed_paths"]),
            blobs=tuple(Blob.from_dict(b) for b in data.get("blobs", [])),
        )

    def to_json(self) -> str:
        """Convert commit to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "Commit":
        """Create commit from JSON string."""
        return cls.from_dict(json.loads(json_str))


@dataclass
class RepositoryMetadata:
    """
    Repository-wide mutable state.

    Invariant: ``branch_heads[current_branch] == head_hash`` once the metadata
    has been saved (see MetadataStore.save).
    """

    current_branch: str
    branch_heads: Dict[str, str] = field(default_factory=dict)
    head_hash: str = ""
    staged_paths: Set[str] = field(default_factory=set)

    def sync_current_branch(self) -> None:
        """Point the current branch at the head commit."""
        self.branch_heads[self.current_branch] = self.head_hash

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to dictionary for serialization."""
        return {
            "current_branch": self.current_branch,
            "branch_heads": dict(self.branch_heads),
            "head_hash": self.head_hash,
            "staged_paths": sorted(self.staged_paths),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepositoryMetadata":
        """Create metadata from dictionary."""
        return cls(
            current_branch=data["current_branch"],
            branch_heads=dict(data["branch_heads"]),
            head_hash=data["head_hash"],
            staged_paths=set(data["staged_paths"]),
        )

    def to_json(self) -> str:
        """Convert metadata to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "RepositoryMetadata":
        """Create metadata from JSON string."""
        return cls.from_dict(json.loads(json_str))


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string with microsecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _update_field(digest: Any, value: bytes) -> None:
    # Length prefix keeps ("ab", "c") and ("a", "bc") distinct
    digest.update(f"{len(value)}:".encode("ascii"))
    digest.update(value)


def compute_commit_hash(
    branch: str,
    parent_hash: str,
    timestamp: str,
    message: str,
    snapshot_index: Iterable[str],
    blobs: Iterable[Blob],
) -> str:
    """
    Compute the SHA-256 digest identifying a commit.

    Fields are fed in a fixed order and blobs are sorted by path, so the same
    payload always yields the same hash. The timestamp is part of the payload:
    committing identical content twice produces two distinct commits.
    """
    digest = hashlib.sha256()
    for value in (branch, parent_hash, timestamp, message):
        _update_field(digest, value.encode("utf-8"))

    paths = sorted(snapshot_index)
    _update_field(digest, str(len(paths)).encode("ascii"))
    for path in paths:
        _update_field(digest, path.encode("utf-8"))

    for blob in sorted(blobs, key=lambda b: b.path):
        _update_field(digest, blob.path.encode("utf-8"))
        _update_field(digest, blob.data)

    return digest.hexdigest()


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_epoch_ns(moment: datetime) -> int:
    """Exact nanoseconds since the epoch for an aware datetime."""
    return (moment - _EPOCH) // timedelta(microseconds=1) * 1000
