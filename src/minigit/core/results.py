"""Result values returned by :class:`minigit.core.repository.Repository`.

Repository operations never raise for expected outcomes; they return one of
these frozen records. ``status`` says what happened, ``message`` is ready to
show to a user.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from minigit.storage import Commit


class Status(str, Enum):
    OK = "ok"
    ALREADY_STAGED = "already_staged"
    NOT_STAGED = "not_staged"
    FILE_NOT_FOUND = "file_not_found"
    INVALID_PATH = "invalid_path"
    OUTSIDE_REPOSITORY = "outside_repository"
    NOTHING_TO_COMMIT = "nothing_to_commit"
    PERSISTENCE_FAILURE = "persistence_failure"
    NOT_FOUND = "not_found"
    CORRUPTED = "corrupted"
    HISTORY_TRUNCATED = "history_truncated"
    HASH_COLLISION = "hash_collision"
    NOT_IMPLEMENTED = "not_implemented"


# Outcomes that are reported but are not failures
INFORMATIONAL = frozenset({Status.ALREADY_STAGED, Status.NOTHING_TO_COMMIT})


@dataclass(frozen=True)
class Result:
    status: Status
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status is Status.OK

    @property
    def failed(self) -> bool:
        return not self.ok and self.status not in INFORMATIONAL


@dataclass(frozen=True)
class AddResult(Result):
    path: str = ""
    blob_hash: Optional[str] = None


@dataclass(frozen=True)
class UnstageResult(Result):
    path: str = ""


@dataclass(frozen=True)
class CommitResult(Result):
    commit: Optional[Commit] = None


@dataclass(frozen=True)
class LogResult(Result):
    """Commits reachable from HEAD, newest first.

    On ``HISTORY_TRUNCATED`` ``commits`` holds what was read before the
    break and ``truncated_at`` the hash that failed to load.
    """

    commits: Tuple[Commit, ...] = ()
    truncated_at: Optional[str] = None


@dataclass(frozen=True)
class ShowResult(Result):
    commit: Optional[Commit] = None


@dataclass(frozen=True)
class BlobResult(Result):
    blob_hash: str = ""
    content: Optional[bytes] = None


@dataclass(frozen=True)
class StatusReport(Result):
    head: str = ""
    staged: Tuple[str, ...] = ()
    hash_algorithm: str = ""
