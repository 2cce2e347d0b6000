"""
Merge engine.

Finds the lowest common ancestor of two commits and replays the incoming
branch's history on top of the working tree. The merge is one-sided: the
current branch's own changes since the common ancestor are simply whatever
is on disk, and a conflict is any incoming file whose content differs from
the local one.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Set

from loguru import logger

from .checkout import WorkingTree
from .errors import ConsistencyError
from .models import Commit
from .storage import CommitStore

# Called with the conflicting path; True keeps the local file,
# False replaces it with the incoming content.
ConflictPolicy = Callable[[Path], bool]


def keep_local(path: Path) -> bool:
    """Conflict policy that always keeps the local file."""
    return True


def take_incoming(path: Path) -> bool:
    """Conflict policy that always takes the incoming file."""
    return False


@dataclass
class MergeResult:
    """Outcome of a merge."""

    commit_hash: str
    incoming_hash: str
    base_hash: str
    adopted: List[str] = field(default_factory=list)
    kept: List[str] = field(default_factory=list)
    overwritten: List[str] = field(default_factory=list)

    @property
    def conflicts(self) -> List[str]:
        """Paths on which the conflict policy was consulted."""
        return sorted(self.kept + self.overwritten)

    def summary(self) -> str:
        """One-line summary of the merge outcome."""
        return (
            f"{len(self.adopted)} adopted, {len(self.overwritten)} overwritten, "
            f"{len(self.kept)} kept local"
        )


def find_common_ancestor(
    commit_store: CommitStore, first: Commit, second: Commit
) -> Commit:
    """
    Find the lowest common ancestor of two commits.

    Each commit has a single parent, so the history is a tree. Walking the
    deeper cursor (higher generation) up until both cursors meet yields the
    nearest shared commit without relying on wall-clock ordering.

    Raises:
        ConsistencyError: If the cursors reach the root without meeting
    """
    left, right = first, second
    while left.commit_hash != right.commit_hash:
        step_left = left.generation >= right.generation
        step_right = right.generation >= left.generation

        if step_left:
            if left.is_root:
                break
            left = commit_store.get(left.parent_hash)
        if step_right:
            if right.is_root:
                break
            right = commit_store.get(right.parent_hash)

    if left.commit_hash != right.commit_hash:
        raise ConsistencyError(
            f"Commits {first.commit_hash} and {second.commit_hash} share no common ancestor"
        )

    logger.debug(
        "Found common ancestor",
        first=first.commit_hash,
        second=second.commit_hash,
        ancestor=left.commit_hash,
    )
    return left


def replay_incoming(
    commit_store: CommitStore,
    tree: WorkingTree,
    incoming: Commit,
    base_hash: str,
    staged_paths: Set[str],
    conflict_policy: ConflictPolicy,
    result: MergeResult,
) -> None:
    """
    Apply the incoming branch's changes since ``base_hash`` to the working tree.

    Commits are visited newest first and each path is settled at most once,
    so the most recent incoming version of a file is the one considered.
    Only paths still tracked by ``incoming`` take part.

    Args:
        commit_store: Store to read incoming history from
        tree: Working tree to update
        incoming: Head commit of the branch being merged in
        base_hash: Common ancestor; replay stops before it
        staged_paths: Index to extend with paths taken from the incoming side
        conflict_policy: Decides conflicting paths
        result: Accumulates adopted, kept and overwritten paths
    """
    settled: Set[str] = set()
    candidates = set(incoming.snapshot_index)

    for commit in commit_store.iter_ancestors(incoming.commit_hash):
        if commit.commit_hash == base_hash or settled >= candidates:
            break

        for blob in commit.blobs:
            if blob.path in settled or blob.path not in candidates:
                continue
            settled.add(blob.path)

            local = Path(blob.path)
            if not local.exists():
                tree.write_blob(blob)
                staged_paths.add(blob.path)
                result.adopted.append(blob.path)
                continue

            if tree.read_file(blob.path) == blob.data:
                continue

            if conflict_policy(local):
                logger.warning("Merge conflict resolved: kept local", path=blob.path)
                result.kept.append(blob.path)
            else:
                logger.warning("Merge conflict resolved: took incoming", path=blob.path)
                tree.write_blob(blob)
                staged_paths.add(blob.path)
                result.overwritten.append(blob.path)
