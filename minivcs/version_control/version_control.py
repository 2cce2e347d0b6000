"""
Version control for a working directory.

Provides git-like operations: staging, committing, checkout, branching,
merging and per-file reset.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set

from loguru import logger

from minivcs.config import RepositoryConfig, config
from minivcs.logging import performance_monitor, track_repository_operation

from .checkout import WorkingTree, find_blob_in_history, restore_snapshot
from .errors import (
    AlreadyExistsError,
    AlreadyStagedError,
    InvalidOperationError,
    NotFoundError,
    NotStagedError,
    StoreError,
)
from .merge import ConflictPolicy, MergeResult, find_common_ancestor, replay_incoming
from .models import Blob, Commit, RepositoryMetadata, compute_commit_hash, utc_timestamp
from .scanner import WorkingTreeScanner
from .storage import CommitStore, MetadataStore


@dataclass
class RepositoryStatus:
    """Snapshot of the working tree relative to the head commit."""

    branch: str
    head_hash: str
    added: Set[str] = field(default_factory=set)
    changed: Set[str] = field(default_factory=set)
    deleted: Set[str] = field(default_factory=set)
    untracked: Set[str] = field(default_factory=set)

    @property
    def is_clean(self) -> bool:
        return not (self.added or self.changed or self.deleted)


class VersionControl:
    """
    Version control for one working directory.

    Every instance is bound to a single repository root; there is no
    process-wide repository state. Each operation reloads metadata from disk
    and writes it back last, so a failed operation never leaves metadata
    pointing at a commit that was not stored.

    Example:
        >>> vc = VersionControl(Path("project"))
        >>> vc.init()
        >>> vc.add("a.txt")
        >>> commit_hash = vc.commit("Initial commit")
    """

    def __init__(
        self,
        root: Path = Path("."),
        repo_config: Optional[RepositoryConfig] = None,
    ):
        """
        Initialize version control.

        Args:
            root: Working directory of the repository
            repo_config: Repository settings (default: global configuration)
        """
        self.repo_config = repo_config or config.repository
        self.root = Path(root).resolve()
        self.storage_dir = self.root / self.repo_config.storage_dir_name

        self.metadata_store = MetadataStore(self.storage_dir)
        self.commit_store = CommitStore(self.storage_dir)
        self.scanner = WorkingTreeScanner(self.root, self.storage_dir)
        self.tree = WorkingTree(self.root, self.storage_dir)

    def short_hash(self, commit_hash: str) -> str:
        return commit_hash[: self.repo_config.short_hash_length]

    def _resolve_path(self, path: str) -> str:
        """Turn a user-supplied path into the absolute key used in the index."""
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.root / candidate
        else:
            candidate = candidate.parent.resolve() / candidate.name
        return os.path.normpath(str(candidate))

    def _resolve_commit_hash(self, ref: str, metadata: RepositoryMetadata) -> str:
        """
        Resolve a branch name or commit hash to a stored commit hash.

        Branch names take precedence over hashes.

        Raises:
            NotFoundError: If ``ref`` names neither a branch with commits nor
                a stored commit
        """
        if ref in metadata.branch_heads:
            commit_hash = metadata.branch_heads[ref]
            if not commit_hash:
                raise NotFoundError(f"Branch {ref} has no commits")
            return commit_hash

        if self.commit_store.contains(ref):
            return ref

        raise NotFoundError(f"No branch or commit named {ref}")

    @track_repository_operation("init")
    def init(self) -> None:
        """
        Create a new, empty repository in the working directory.

        Raises:
            AlreadyExistsError: If a repository already exists here
        """
        if self.storage_dir.exists():
            raise AlreadyExistsError(f"Repository in {self.root} already exists")

        try:
            self.storage_dir.mkdir(parents=True)
        except OSError as e:
            raise StoreError(f"Can not create repository directory {self.storage_dir}: {e}") from e
        self.commit_store.ensure_directories()

        metadata = RepositoryMetadata(current_branch=self.repo_config.default_branch)
        self.metadata_store.save(metadata)

        logger.info(
            "Initialized repository", root=str(self.root), branch=metadata.current_branch
        )

    @track_repository_operation("add")
    def add(self, path: str) -> str:
        """
        Stage a file for the next commit.

        Returns:
            Absolute path that was staged

        Raises:
            AlreadyStagedError: If the path is already staged
            NotFoundError: If the file does not exist
            InvalidOperationError: If the path is a directory or lies in storage
        """
        metadata = self.metadata_store.load()
        resolved = self._resolve_path(path)

        if resolved in metadata.staged_paths:
            raise AlreadyStagedError(f"File {resolved} is already staged")

        target = Path(resolved)
        if target == self.storage_dir or self.storage_dir in target.parents:
            raise InvalidOperationError(f"Can not stage repository storage {resolved}")
        if target.is_dir():
            raise InvalidOperationError(f"Can not stage directory {resolved}")
        if not target.exists():
            raise NotFoundError(f"File {resolved} does not exist")

        metadata.staged_paths.add(resolved)
        self.metadata_store.save(metadata)

        logger.info(f"Staged {resolved}")
        return resolved

    @track_repository_operation("remove")
    def remove(self, path: str) -> str:
        """
        Unstage a file and delete it from disk.

        Returns:
            Absolute path that was removed

        Raises:
            NotStagedError: If the path is not staged
        """
        metadata = self.metadata_store.load()
        resolved = self._resolve_path(path)

        if resolved not in metadata.staged_paths:
            raise NotStagedError(f"File {path} is not staged")

        self.tree.delete_file(resolved)
        metadata.staged_paths.discard(resolved)
        self.metadata_store.save(metadata)

        logger.info(f"Removed {resolved}")
        return resolved

    @track_repository_operation("commit")
    def commit(self, message: str) -> str:
        """
        Record the staged files as a new commit on the current branch.

        Only files that are new or modified since the parent commit have
        their content stored. Every changed file is read fully into memory.

        Args:
            message: Commit message

        Returns:
            Hash of the new commit

        Raises:
            InvalidOperationError: If the message is empty
            IoError: If a staged file can not be read
        """
        if not message or not message.strip():
            raise InvalidOperationError("Commit message must not be empty")

        metadata = self.metadata_store.load()

        if not metadata.head_hash:
            parent: Optional[Commit] = None
            snapshot = frozenset(metadata.staged_paths)
            changed = snapshot
        else:
            parent = self.commit_store.get(metadata.head_hash)
            updated = self.scanner.updated(parent.created_at, parent.snapshot_index)
            deleted = self.scanner.deleted(parent.snapshot_index)

            snapshot = frozenset(metadata.staged_paths - deleted)
            changed = frozenset(((snapshot - parent.snapshot_index) | updated) & snapshot)

        blobs = tuple(
            Blob(path=path, data=self.tree.read_file(path)) for path in sorted(changed)
        )

        timestamp = utc_timestamp()
        parent_hash = parent.commit_hash if parent else ""
        commit = Commit(
            commit_hash=compute_commit_hash(
                branch=metadata.current_branch,
                parent_hash=parent_hash,
                timestamp=timestamp,
                message=message,
                snapshot_index=snapshot,
                blobs=blobs,
            ),
            branch=metadata.current_branch,
            parent_hash=parent_hash,
            timestamp=timestamp,
            generation=parent.generation + 1 if parent else 0,
            message=message,
            snapshot_index=snapshot,
            changed_paths=changed,
            blobs=blobs,
        )

        self.commit_store.put(commit)

        metadata.head_hash = commit.commit_hash
        metadata.staged_paths = set(snapshot)
        self.metadata_store.save(metadata)

        logger.info(
            f"Committed {self.short_hash(commit.commit_hash)}",
            commit_hash=commit.commit_hash,
            branch=commit.branch,
            changed=len(changed),
        )
        return commit.commit_hash

    @track_repository_operation("checkout")
    def checkout(self, branch_or_hash: str) -> Commit:
        """
        Check out a branch head or a commit.

        Args:
            branch_or_hash: Branch name, or commit hash if no branch matches

        Returns:
            The checked-out commit

        Raises:
            NotFoundError: If neither a branch nor a commit matches
        """
        metadata = self.metadata_store.load()
        commit_hash = self._resolve_commit_hash(branch_or_hash, metadata)
        return self.checkout_commit(commit_hash)

    @performance_monitor(threshold_ms=2000.0)
    def checkout_commit(self, commit_hash: str) -> Commit:
        """
        Rebuild the working tree to match a commit.

        Every file outside the storage directory is deleted, then each
        tracked path is restored from the nearest ancestor storing it. The
        commit's branch becomes current and its snapshot becomes the index.

        Raises:
            NotFoundError: If no commit exists for ``commit_hash``
            IoError: If the working tree can not be rewritten
        """
        metadata = self.metadata_store.load()
        target = self.commit_store.get(commit_hash)

        restore_snapshot(self.commit_store, target, self.tree)

        metadata.current_branch = target.branch
        metadata.head_hash = target.commit_hash
        metadata.staged_paths = set(target.snapshot_index)
        self.metadata_store.save(metadata)

        logger.info(
            f"Checked out {self.short_hash(target.commit_hash)}",
            commit_hash=target.commit_hash,
            branch=target.branch,
        )
        return target

    @track_repository_operation("new_branch")
    def new_branch(self, name: str) -> None:
        """
        Create a branch at the head commit and make it current.

        Raises:
            InvalidOperationError: If the name is empty
            AlreadyExistsError: If the branch already exists
        """
        if not name or not name.strip():
            raise InvalidOperationError("Branch name must not be empty")

        metadata = self.metadata_store.load()
        if name in metadata.branch_heads:
            raise AlreadyExistsError(f"Branch {name} already exists")

        metadata.current_branch = name
        self.metadata_store.save(metadata)

        logger.info(f"Created branch: {name} at {self.short_hash(metadata.head_hash) or '(empty)'}")

    @track_repository_operation("remove_branch")
    def remove_branch(self, name: str) -> None:
        """
        Delete a branch pointer. Its commits stay in the store.

        Raises:
            InvalidOperationError: If ``name`` is the current branch
            NotFoundError: If the branch does not exist
        """
        metadata = self.metadata_store.load()
        if metadata.current_branch == name:
            raise InvalidOperationError(
                "Can not remove current branch. Checkout to other branch first."
            )
        if name not in metadata.branch_heads:
            raise NotFoundError(f"Branch {name} not found")

        del metadata.branch_heads[name]
        self.metadata_store.save(metadata)

        logger.info(f"Removed branch: {name}")

    @track_repository_operation("merge")
    @performance_monitor(threshold_ms=2000.0)
    def merge(self, branch_or_hash: str, conflict_policy: ConflictPolicy) -> MergeResult:
        """
        Merge another branch or commit into the current branch.

        The incoming history is replayed from its head back to the common
        ancestor. Files missing locally are adopted and staged; files whose
        local content differs are decided by ``conflict_policy`` (True keeps
        the local file). The result is committed on the current branch.

        Args:
            branch_or_hash: Branch name, or commit hash if no branch matches
            conflict_policy: Called once per conflicting path

        Returns:
            MergeResult describing the merge commit and affected paths

        Raises:
            NotFoundError: If the argument does not resolve
            InvalidOperationError: If the current branch has no commits
            ConsistencyError: If the histories share no ancestor
            IoError: If a working-tree file can not be read or written
        """
        metadata = self.metadata_store.load()
        incoming_hash = self._resolve_commit_hash(branch_or_hash, metadata)
        if not metadata.head_hash:
            raise InvalidOperationError("Can not merge into a branch without commits")

        current = self.commit_store.get(metadata.head_hash)
        incoming = self.commit_store.get(incoming_hash)
        base = find_common_ancestor(self.commit_store, current, incoming)

        logger.info(
            f"Merging {self.short_hash(incoming_hash)} into {metadata.current_branch}",
            base=base.commit_hash,
        )

        result = MergeResult(
            commit_hash="", incoming_hash=incoming_hash, base_hash=base.commit_hash
        )
        replay_incoming(
            self.commit_store,
            self.tree,
            incoming,
            base.commit_hash,
            metadata.staged_paths,
            conflict_policy,
            result,
        )
        self.metadata_store.save(metadata)

        result.commit_hash = self.commit(
            f"Merge with revision {incoming_hash} of branch {current.branch}"
        )
        logger.info(f"Merged {self.short_hash(incoming_hash)}: {result.summary()}")
        return result

    @track_repository_operation("reset")
    def reset(self, path: str) -> bool:
        """
        Restore a file to its most recently committed content.

        Returns:
            True if content was found and restored, False if no commit
            reachable from the head stores the file
        """
        metadata = self.metadata_store.load()
        resolved = self._resolve_path(path)

        blob = find_blob_in_history(self.commit_store, metadata.head_hash, resolved)
        if blob is None:
            logger.info(f"Nothing to restore for {resolved}")
            return False

        self.tree.write_blob(blob)
        logger.info(f"Reset {resolved}")
        return True

    @track_repository_operation("clean")
    def clean(self) -> int:
        """
        Delete every file that is not staged.

        Returns:
            Number of files deleted
        """
        metadata = self.metadata_store.load()
        return self.tree.clear(keep=frozenset(metadata.staged_paths))

    def _head_commit(self, metadata: RepositoryMetadata) -> Optional[Commit]:
        if not metadata.head_hash:
            return None
        return self.commit_store.get(metadata.head_hash)

    def get_added(self) -> Set[str]:
        """Staged paths that are not part of the head commit."""
        metadata = self.metadata_store.load()
        head = self._head_commit(metadata)
        if head is None:
            return set(metadata.staged_paths)
        return set(metadata.staged_paths) - head.snapshot_index

    def get_changed(self) -> Set[str]:
        """Head commit paths modified on disk since the head commit."""
        metadata = self.metadata_store.load()
        head = self._head_commit(metadata)
        if head is None:
            return set()
        return self.scanner.updated(head.created_at, head.snapshot_index)

    def get_deleted(self) -> Set[str]:
        """Head commit paths that no longer exist on disk."""
        metadata = self.metadata_store.load()
        head = self._head_commit(metadata)
        if head is None:
            return set()
        return self.scanner.deleted(head.snapshot_index)

    def get_branch(self) -> str:
        """Get current branch name."""
        return self.metadata_store.load().current_branch

    def get_branches(self) -> List[str]:
        """List all branches."""
        return sorted(self.metadata_store.load().branch_heads)

    def get_log(self, max_count: Optional[int] = None) -> List[Commit]:
        """
        Get commit history of the head commit.

        Args:
            max_count: Maximum number of commits to return (default: all)

        Returns:
            Commits from the head back to the root
        """
        metadata = self.metadata_store.load()
        commits: List[Commit] = []
        for commit in self.commit_store.iter_ancestors(metadata.head_hash):
            if max_count is not None and len(commits) >= max_count:
                break
            commits.append(commit)
        return commits

    def status(self) -> RepositoryStatus:
        """Collect added, changed, deleted and untracked paths."""
        metadata = self.metadata_store.load()
        head = self._head_commit(metadata)

        status = RepositoryStatus(
            branch=metadata.current_branch,
            head_hash=metadata.head_hash,
            untracked=self.scanner.untracked(metadata.staged_paths),
        )
        if head is None:
            status.added = set(metadata.staged_paths)
        else:
            status.added = set(metadata.staged_paths) - head.snapshot_index
            status.changed = self.scanner.updated(head.created_at, head.snapshot_index)
            status.deleted = self.scanner.deleted(head.snapshot_index)
        return status
