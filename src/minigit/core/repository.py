"""Repository coordinator for MiniGit.

`Repository` owns the on-disk layout and wires the components together:

    add     -> ContentHasher + ObjectStore + StagingArea
    commit  -> StagingArea + CommitStore
    log     -> HistoryWalker from HEAD

Component errors stop here. Every operation returns a result value from
:mod:`minigit.core.results`, and a failed operation leaves the repository as
it was.
"""

import logging
import shutil
import time
from pathlib import Path
from typing import Optional, Tuple, Union

from minigit.config import Config
from minigit.constants import (
    COMMITS_DIR,
    CONFIG_FILE,
    DEFAULT_BRANCH_REF,
    HASH_CHECKSUM,
    OBJECTS_DIR,
    REFS_DIR,
    REPO_DIR,
)
from minigit.core.history import HistoryWalker
from minigit.core.results import (
    AddResult,
    BlobResult,
    CommitResult,
    LogResult,
    Result,
    ShowResult,
    Status,
    StatusReport,
    UnstageResult,
)
from minigit.core.staging import StagingArea
from minigit.errors import (
    AlreadyStagedError,
    BlobCorruptedError,
    BlobNotFoundError,
    CommitCollisionError,
    CommitCorruptedError,
    CommitNotFoundError,
    HistoryTruncatedError,
    InvalidPathError,
    NotARepositoryError,
    NothingToCommitError,
    NotStagedError,
    OutsideRepositoryError,
    PersistenceError,
    RepositoryExistsError,
)
from minigit.storage import CommitStore, ContentHasher, ObjectStore
from minigit.storage.hashing import validate_hash_algorithm

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class Repository:
    """A MiniGit repository rooted at a workspace directory.

    Attributes:
        workspace_root: Working tree root
        repo_dir: The .minigit directory
        config: Repository configuration
        hasher: ContentHasher chosen by the config
        object_store: Blob storage
        commit_store: Commit records and HEAD
        staging: Pending paths
        history: Commit chain traversal
    """

    def __init__(self, workspace_root: PathLike = ".") -> None:
        """Open an existing repository.

        Args:
            workspace_root: Directory containing .minigit/

        Raises:
            NotARepositoryError: If there is no .minigit/ directory
            ConfigError: If the repository config is invalid
        """
        self.workspace_root = Path(workspace_root).resolve()
        self.repo_dir = self.workspace_root / REPO_DIR

        if not self.repo_dir.is_dir():
            raise NotARepositoryError(
                f"Not a MiniGit repository (no {REPO_DIR}/ found in {self.workspace_root})"
            )

        self.config = Config(self.repo_dir / CONFIG_FILE)
        self.hasher = ContentHasher(self.config.hash_algorithm)
        self.object_store = ObjectStore(self.repo_dir, self.hasher)
        self.commit_store = CommitStore(self.repo_dir, self.hasher)
        self.staging = StagingArea(self.workspace_root, self.object_store, self.repo_dir)
        self.history = HistoryWalker(self.commit_store)
        self._head = self.commit_store.read_head()

    @classmethod
    def init(
        cls,
        workspace_root: PathLike = ".",
        hash_algorithm: Optional[str] = None,
        force: bool = False,
    ) -> "Repository":
        """Create the repository layout and return the opened repository.

        Args:
            workspace_root: Directory to initialize
            hash_algorithm: ``sha256`` or ``checksum``; defaults to the
                ``MINIGIT_CORE_HASH_ALGORITHM`` environment variable, then
                ``sha256``
            force: Replace an existing .minigit/ directory

        Raises:
            RepositoryExistsError: If .minigit/ exists and force is False
            ConfigError: If hash_algorithm is unknown
            PersistenceError: If the layout cannot be created
        """
        workspace_root = Path(workspace_root).resolve()
        repo_dir = workspace_root / REPO_DIR

        if repo_dir.exists():
            if not force:
                raise RepositoryExistsError(
                    f"MiniGit repository already exists in {workspace_root}"
                )
            logger.warning("Removing existing %s", repo_dir)
            shutil.rmtree(repo_dir)

        config = Config(repo_dir / CONFIG_FILE)
        if hash_algorithm is None:
            hash_algorithm = config.hash_algorithm
        algorithm = validate_hash_algorithm(hash_algorithm)

        logger.info("Initializing MiniGit repository in %s", workspace_root)
        try:
            for directory in (
                repo_dir,
                repo_dir / OBJECTS_DIR,
                repo_dir / REFS_DIR,
                repo_dir / COMMITS_DIR,
            ):
                directory.mkdir(parents=True, exist_ok=True)
                logger.debug("Created: %s", directory)

            config.set("core", "hash_algorithm", algorithm)
            config.save()

            CommitStore(repo_dir).write_head(DEFAULT_BRANCH_REF)
            logger.debug("Initialized HEAD to %s", DEFAULT_BRANCH_REF)

        except (OSError, PersistenceError) as e:
            # Clean up partial initialization
            if repo_dir.exists():
                shutil.rmtree(repo_dir, ignore_errors=True)
            raise PersistenceError(f"Failed to initialize repository: {e}") from e

        return cls(workspace_root)

    @classmethod
    def discover(cls, start: PathLike = ".") -> "Repository":
        """Open the repository containing ``start`` or one of its parents.

        Raises:
            NotARepositoryError: If no ancestor holds a .minigit/ directory
        """
        start = Path(start).resolve()
        for candidate in (start, *start.parents):
            if (candidate / REPO_DIR).is_dir():
                return cls(candidate)
        raise NotARepositoryError(
            f"Not a MiniGit repository (or any parent up to /): {start}"
        )

    @property
    def head(self) -> str:
        """Hash of the most recent commit, "" before the first commit."""
        return self._head

    @property
    def staged(self) -> Tuple[str, ...]:
        """Staged paths in discovery order."""
        return self.staging.paths()

    def add(self, path: PathLike) -> AddResult:
        """Stage a file for the next commit."""
        try:
            staged = self.staging.stage(path)
        except AlreadyStagedError as e:
            logger.info("%s", e)
            return AddResult(Status.ALREADY_STAGED, str(e), path=e.path)
        except FileNotFoundError as e:
            logger.info("Add failed: %s", e)
            return AddResult(Status.FILE_NOT_FOUND, str(e), path=str(path))
        except OutsideRepositoryError as e:
            return AddResult(Status.OUTSIDE_REPOSITORY, str(e), path=str(path))
        except InvalidPathError as e:
            return AddResult(Status.INVALID_PATH, str(e), path=str(path))
        except PersistenceError as e:
            return AddResult(Status.PERSISTENCE_FAILURE, str(e), path=str(path))

        return AddResult(
            Status.OK,
            f"Staged: {staged.path}",
            path=staged.path,
            blob_hash=staged.blob_hash,
        )

    def unstage(self, path: PathLike) -> UnstageResult:
        """Drop a path from the staging area."""
        try:
            rel_path = self.staging.unstage(path)
        except NotStagedError as e:
            return UnstageResult(Status.NOT_STAGED, str(e), path=e.path)
        except OutsideRepositoryError as e:
            return UnstageResult(Status.OUTSIDE_REPOSITORY, str(e), path=str(path))
        except InvalidPathError as e:
            return UnstageResult(Status.INVALID_PATH, str(e), path=str(path))
        except PersistenceError as e:
            return UnstageResult(Status.PERSISTENCE_FAILURE, str(e), path=str(path))

        return UnstageResult(Status.OK, f"Unstaged: {rel_path}", path=rel_path)

    def commit(self, message: str, timestamp: Optional[int] = None) -> CommitResult:
        """Record the staged files as a new commit on top of HEAD.

        Args:
            message: Commit message
            timestamp: Seconds since the epoch (defaults to now)
        """
        if timestamp is None:
            timestamp = int(time.time())

        commit = None
        try:
            with self.staging.drain() as files:
                commit = self.commit_store.commit(message, timestamp, self._head, files)
                self._head = commit.hash
        except NothingToCommitError as e:
            logger.info("%s", e)
            return CommitResult(Status.NOTHING_TO_COMMIT, str(e))
        except CommitNotFoundError as e:
            return CommitResult(Status.NOT_FOUND, str(e))
        except CommitCollisionError as e:
            detail = f"{e}; staged files were kept"
            if self.hasher.algorithm == HASH_CHECKSUM:
                detail += (
                    ". Checksum commit hashes cover only the message, timestamp and"
                    " file names, so repeating a message within the same second"
                    " collides; use sha256 (minigit init --hash-algorithm sha256)"
                )
            logger.info("%s", e)
            return CommitResult(Status.HASH_COLLISION, detail)
        except PersistenceError as e:
            if commit is not None:
                # Commit and HEAD are on disk; only clearing the index failed
                paths = " ".join(commit.files)
                return CommitResult(
                    Status.PERSISTENCE_FAILURE,
                    f"Committed {commit.hash} but could not clear the staging area: {e}."
                    f" Run 'minigit unstage {paths}' before the next commit",
                    commit=commit,
                )
            return CommitResult(Status.PERSISTENCE_FAILURE, str(e))

        return CommitResult(Status.OK, f"Committed with hash: {commit.hash}", commit=commit)

    def log(self, max_count: Optional[int] = None) -> LogResult:
        """Commits reachable from HEAD, newest first."""
        commits = []
        try:
            for commit in self.history.walk(self._head, max_count=max_count):
                commits.append(commit)
        except HistoryTruncatedError as e:
            return LogResult(
                Status.HISTORY_TRUNCATED,
                str(e),
                commits=tuple(commits),
                truncated_at=e.commit_hash,
            )

        message = "" if commits else "No commits yet."
        return LogResult(Status.OK, message, commits=tuple(commits))

    def show(self, commit_hash: str) -> ShowResult:
        """Load a single commit record."""
        try:
            commit = self.commit_store.read_commit(commit_hash)
        except (CommitNotFoundError, ValueError) as e:
            return ShowResult(Status.NOT_FOUND, str(e))
        except CommitCorruptedError as e:
            return ShowResult(Status.CORRUPTED, str(e))
        return ShowResult(Status.OK, commit=commit)

    def cat_blob(self, blob_hash: str) -> BlobResult:
        """Load the raw content stored under ``blob_hash``."""
        try:
            content = self.object_store.read_blob(blob_hash)
        except (BlobNotFoundError, ValueError) as e:
            return BlobResult(Status.NOT_FOUND, str(e), blob_hash=blob_hash)
        except BlobCorruptedError as e:
            return BlobResult(Status.CORRUPTED, str(e), blob_hash=blob_hash)
        return BlobResult(Status.OK, blob_hash=blob_hash, content=content)

    def status(self) -> StatusReport:
        return StatusReport(
            Status.OK,
            head=self._head,
            staged=self.staging.paths(),
            hash_algorithm=self.hasher.algorithm,
        )

    # Reserved capabilities

    def branch(self, name: str) -> Result:
        return self._not_implemented("branch")

    def checkout(self, branch_name: str) -> Result:
        return self._not_implemented("checkout")

    def merge(self, branch_name: str) -> Result:
        return self._not_implemented("merge")

    def diff(self, hash1: str, hash2: str) -> Result:
        return self._not_implemented("diff")

    def _not_implemented(self, operation: str) -> Result:
        logger.debug("%s requested but not implemented", operation)
        return Result(Status.NOT_IMPLEMENTED, f"{operation} is not implemented")
