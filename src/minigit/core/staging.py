"""Staging area management for MiniGit.

The staging area (index) is the ordered, duplicate-free set of working-tree
paths queued for the next commit. It is persisted as JSON in
`.minigit/index` so it survives between command invocations:

    {
        "version": 1,
        "entries": {
            "relative/path/to/file": "<blob hash>",
            ...
        }
    }
"""

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple, Union

from minigit.constants import INDEX_FILE, INDEX_VERSION, REPO_DIR
from minigit.errors import (
    AlreadyStagedError,
    InvalidPathError,
    NotARepositoryError,
    NotStagedError,
    OutsideRepositoryError,
    PersistenceError,
    StagingError,
)
from minigit.storage import ObjectStore
from minigit.storage.fileio import atomic_write

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class StagedFile:
    """A path pending inclusion in the next commit."""

    path: str
    blob_hash: str


class StagingArea:
    """Manager for the staging area (index).

    Attributes:
        workspace_root: Root directory of the workspace
        repo_dir: The .minigit directory
        index_path: Path to the index file (.minigit/index)
        object_store: ObjectStore receiving staged blobs
    """

    def __init__(
        self,
        workspace_root: Path,
        object_store: ObjectStore,
        repo_dir: Optional[Path] = None,
    ) -> None:
        """Initialize StagingArea.

        Args:
            workspace_root: Root directory of workspace
            object_store: ObjectStore for blob management
            repo_dir: Repository directory (defaults to workspace_root/.minigit)

        Raises:
            NotARepositoryError: If the repository directory is missing
            StagingError: If the index file is unreadable
        """
        self.workspace_root = Path(workspace_root).resolve()
        self.repo_dir = Path(repo_dir) if repo_dir else self.workspace_root / REPO_DIR
        self.index_path = self.repo_dir / INDEX_FILE
        self.object_store = object_store

        if not self.repo_dir.exists():
            raise NotARepositoryError(
                f"Not a MiniGit repository (no {REPO_DIR}/ found in {workspace_root})"
            )

        self._entries: Dict[str, str] = self._load_index()

    def stage(self, path: PathLike) -> StagedFile:
        """Add a file to the staging area.

        The file must exist when this is called. Staging a path that is
        already pending does nothing, not even re-reading the file.

        Args:
            path: File path, absolute or relative to the workspace root

        Returns:
            The newly staged entry

        Raises:
            FileNotFoundError: If the path is not a readable regular file
            OutsideRepositoryError: If the path is outside the workspace or
                inside the repository directory
            InvalidPathError: If the path cannot be recorded in a commit
            AlreadyStagedError: If the path is already staged
            PersistenceError: If the blob or index cannot be written
        """
        abs_path = self._resolve_path(Path(path))
        rel_path = self._relative(abs_path)

        if not abs_path.is_file():
            raise FileNotFoundError(f"File not found: {path}")

        if rel_path in self._entries:
            raise AlreadyStagedError(rel_path)

        try:
            content = abs_path.read_bytes()
        except OSError as e:
            raise FileNotFoundError(f"File not found: {path} ({e.strerror})") from e

        blob_hash = self.object_store.write_blob(content)

        self._entries[rel_path] = blob_hash
        try:
            self._save_index()
        except PersistenceError:
            del self._entries[rel_path]
            raise

        logger.info("Staged: %s", rel_path)
        return StagedFile(path=rel_path, blob_hash=blob_hash)

    def unstage(self, path: PathLike) -> str:
        """Remove a path from the staging area.

        The blob stays in the object store.

        Returns:
            The workspace-relative path that was removed

        Raises:
            NotStagedError: If the path is not staged
            OutsideRepositoryError: If the path is outside the workspace
            PersistenceError: If the index cannot be written
        """
        rel_path = self._relative(self._resolve_path(Path(path)))
        if rel_path not in self._entries:
            raise NotStagedError(rel_path)

        blob_hash = self._entries.pop(rel_path)
        try:
            self._save_index()
        except PersistenceError:
            self._entries[rel_path] = blob_hash
            raise

        logger.info("Unstaged: %s", rel_path)
        return rel_path

    def paths(self) -> Tuple[str, ...]:
        """Staged paths in the order they were added."""
        return tuple(self._entries)

    def entries(self) -> Tuple[StagedFile, ...]:
        return tuple(StagedFile(p, h) for p, h in self._entries.items())

    def is_empty(self) -> bool:
        return not self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    @contextmanager
    def drain(self) -> Iterator[Tuple[str, ...]]:
        """Hand out the pending paths for a commit.

        The staging area is cleared when the ``with`` block finishes without
        an exception; if the block raises, every path stays staged.

        Example:
            >>> with staging.drain() as files:
            ...     commit_store.commit(message, ts, head, files)
        """
        yield self.paths()
        self.clear()

    def clear(self) -> None:
        """Clear all staged files.

        Raises:
            PersistenceError: If the index cannot be written
        """
        previous = self._entries
        self._entries = {}
        try:
            self._save_index()
        except PersistenceError:
            self._entries = previous
            raise

    def _load_index(self) -> Dict[str, str]:
        """Load index from disk."""
        if not self.index_path.exists():
            return {}

        try:
            with open(self.index_path, "r", encoding="utf-8") as f:
                index = json.load(f)
        except json.JSONDecodeError as e:
            raise StagingError(f"Corrupted index file: {e}") from e

        if not isinstance(index, dict) or index.get("version") != INDEX_VERSION:
            version = index.get("version") if isinstance(index, dict) else None
            raise StagingError(f"Unsupported index version: {version}")

        entries = index.get("entries", {})
        if not isinstance(entries, dict):
            raise StagingError("Corrupted index file: 'entries' is not an object")
        return {str(k): str(v) for k, v in entries.items()}

    def _save_index(self) -> None:
        """Save index to disk."""
        index = {"version": INDEX_VERSION, "entries": self._entries}
        data = json.dumps(index, indent=2, ensure_ascii=False).encode("utf-8")
        try:
            atomic_write(self.index_path, data)
        except OSError as e:
            logger.error("Failed to write index: %s", e)
            raise PersistenceError(f"Failed to write staging index: {e}") from e

    def _resolve_path(self, path: Path) -> Path:
        """Resolve path to absolute path within workspace."""
        if path.is_absolute():
            abs_path = path.resolve()
        else:
            abs_path = (self.workspace_root / path).resolve()

        try:
            abs_path.relative_to(self.workspace_root)
        except ValueError:
            raise OutsideRepositoryError(
                f"Path {path} is outside workspace root {self.workspace_root}"
            ) from None

        try:
            abs_path.relative_to(self.repo_dir.resolve())
        except ValueError:
            return abs_path
        raise OutsideRepositoryError(f"Path {path} is inside the repository directory")

    def _relative(self, abs_path: Path) -> str:
        # POSIX form so the index and commits are portable
        rel_path = abs_path.relative_to(self.workspace_root).as_posix()
        if rel_path == ".":
            raise InvalidPathError("Cannot stage the workspace root")
        if "\n" in rel_path or "\r" in rel_path:
            raise InvalidPathError(f"Path contains a line break: {rel_path!r}")
        return rel_path
