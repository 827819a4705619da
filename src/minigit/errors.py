"""MiniGit error types.

Components raise these; :class:`minigit.core.repository.Repository` catches
them and reports a :class:`minigit.core.results.Status` instead. Only the
bootstrap errors (:class:`NotARepositoryError`, :class:`RepositoryExistsError`)
and :class:`ConfigError` reach callers of the repository directly.
"""


class MiniGitError(Exception):
    """Base class for all MiniGit errors."""


class NotARepositoryError(MiniGitError):
    """Raised when no .minigit directory is found."""


class RepositoryExistsError(MiniGitError):
    """Raised by init when a repository already exists at the target."""


class ConfigError(MiniGitError):
    """Raised for invalid configuration values."""


class PersistenceError(MiniGitError):
    """Raised when writing an object, commit, HEAD or the index fails."""


class CommitCollisionError(MiniGitError):
    """Raised when a new commit's hash names an already persisted commit.

    Attributes:
        commit_hash: The hash that is already taken.
    """

    def __init__(self, commit_hash: str) -> None:
        self.commit_hash = commit_hash
        super().__init__(f"Commit {commit_hash} already exists")


class BlobNotFoundError(MiniGitError):
    """Raised when a blob cannot be found in the object store."""


class BlobCorruptedError(MiniGitError):
    """Raised when a blob's hash doesn't match its content."""


class CommitNotFoundError(MiniGitError):
    """Raised when a commit record does not exist."""


class CommitCorruptedError(MiniGitError):
    """Raised when a commit record cannot be parsed or fails verification."""


class StagingError(MiniGitError):
    """Base class for staging area errors."""


class InvalidPathError(StagingError):
    """Raised when a path cannot be recorded in the staging area."""


class OutsideRepositoryError(InvalidPathError):
    """Raised for paths outside the workspace or inside .minigit."""


class AlreadyStagedError(StagingError):
    """Raised when staging a path that is already pending.

    Attributes:
        path: Workspace-relative path that was already staged.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"{path} is already staged.")


class NotStagedError(StagingError):
    """Raised when unstaging a path that is not pending."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"{path} is not staged.")


class NothingToCommitError(MiniGitError):
    """Raised when a commit is requested with an empty file list."""

    def __init__(self, message: str = "No changes to commit.") -> None:
        super().__init__(message)


class HistoryTruncatedError(MiniGitError):
    """Raised when history traversal hits a commit it cannot load.

    This is distinct from reaching the root commit, which simply ends the
    walk.

    Attributes:
        commit_hash: Hash that could not be loaded.
        reason: Why loading failed.
        yielded: Number of commits produced before the failure.
    """

    def __init__(
        self,
        commit_hash: str,
        reason: str,
        yielded: int = 0,
    ) -> None:
        self.commit_hash = commit_hash
        self.reason = reason
        self.yielded = yielded
        super().__init__(f"History truncated at {commit_hash}: {reason}")
