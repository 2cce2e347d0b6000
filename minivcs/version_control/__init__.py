"""
Version control system for a working directory.

Provides git-like operations: staging, commits, checkout, branches, merges
and per-file reset.
"""

from .errors import (
    VersionControlError,
    AlreadyExistsError,
    AlreadyStagedError,
    NotFoundError,
    NotStagedError,
    StoreError,
    IoError,
    ConsistencyError,
    InvalidOperationError,
)

from .models import (
    Blob,
    Commit,
    RepositoryMetadata,
    compute_commit_hash,
    to_epoch_ns,
    utc_timestamp,
)

from .storage import MetadataStore, CommitStore

from .scanner import WorkingTreeScanner

from .checkout import WorkingTree, find_blob_in_history, restore_snapshot

from .merge import (
    ConflictPolicy,
    MergeResult,
    find_common_ancestor,
    keep_local,
    replay_incoming,
    take_incoming,
)

from .version_control import VersionControl, RepositoryStatus

__all__ = [
    # Errors
    "VersionControlError",
    "AlreadyExistsError",
    "AlreadyStagedError",
    "NotFoundError",
    "NotStagedError",
    "StoreError",
    "IoError",
    "ConsistencyError",
    "InvalidOperationError",
    # Models
    "Blob",
    "Commit",
    "RepositoryMetadata",
    "compute_commit_hash",
    "to_epoch_ns",
    "utc_timestamp",
    # Storage
    "MetadataStore",
    "CommitStore",
    # Working tree
    "WorkingTreeScanner",
    "WorkingTree",
    "find_blob_in_history",
    "restore_snapshot",
    # Merge
    "ConflictPolicy",
    "MergeResult",
    "find_common_ancestor",
    "keep_local",
    "replay_incoming",
    "take_incoming",
    # Version control
    "VersionControl",
    "RepositoryStatus",
]
