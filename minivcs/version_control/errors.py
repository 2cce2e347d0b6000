"""
Exception hierarchy for the version control core.

Every error raised by a core operation derives from VersionControlError, so a
caller can report any failure with a single except clause.
"""


class VersionControlError(Exception):
    """Base exception for version control errors."""

    pass


class AlreadyExistsError(VersionControlError):
    """Raised when a repository, branch or staged path already exists."""

    pass


class AlreadyStagedError(AlreadyExistsError):
    """Raised when adding a path that is already in the index."""

    pass


class NotFoundError(VersionControlError):
    """Raised when a commit, branch or file cannot be found."""

    pass


class NotStagedError(NotFoundError):
    """Raised when removing a path that is not in the index."""

    pass


class StoreError(VersionControlError):
    """Raised when metadata or commit records cannot be read or written."""

    pass


class IoError(VersionControlError):
    """Raised when a working-tree file cannot be read or written."""

    pass


class ConsistencyError(VersionControlError):
    """Raised when the commit graph is not in the expected shape."""

    pass


class InvalidOperationError(VersionControlError):
    """Raised when an operation is not allowed in the current state."""

    pass
