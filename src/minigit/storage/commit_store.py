"""Commit records and the HEAD pointer.

A commit is stored as a line-oriented text file in `.minigit/commits/<hash>`:

    Message: <text>
    Timestamp: <seconds since epoch>
    Parent: <hash or empty>
    Files:
    <path>
    ...

HEAD holds a single line ``ref: <value>``. A fresh repository points it at a
symbolic name (``refs/master``); every commit overwrites it with the new
commit hash.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from minigit.constants import COMMITS_DIR, DEFAULT_BRANCH_REF, HEAD_FILE, HEAD_PREFIX
from minigit.errors import (
    CommitCollisionError,
    CommitCorruptedError,
    CommitNotFoundError,
    NothingToCommitError,
    PersistenceError,
)
from minigit.storage.fileio import atomic_write
from minigit.storage.hashing import ContentHasher

logger = logging.getLogger(__name__)

_ESCAPES = {"n": "\n", "r": "\r", "\\": "\\"}
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)


def escape_message(message: str) -> str:
    """Fold a message onto one line."""
    return message.replace("\\", "\\\\").replace("\n", "\\n").replace("\r", "\\r")


def unescape_message(text: str) -> str:
    """Inverse of :func:`escape_message`."""
    return _ESCAPE_RE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(0)), text)


@dataclass(frozen=True)
class Commit:
    """An immutable commit record."""

    hash: str
    message: str
    timestamp: int
    parent_hash: str
    files: Tuple[str, ...]

    @property
    def is_root(self) -> bool:
        return not self.parent_hash

    def serialize(self) -> str:
        lines = [
            f"Message: {escape_message(self.message)}",
            f"Timestamp: {self.timestamp}",
            f"Parent: {self.parent_hash}",
            "Files:",
        ]
        lines.extend(self.files)
        return "\n".join(lines) + "\n"

    @classmethod
    def parse(cls, commit_hash: str, text: str) -> "Commit":
        """Parse a commit file.

        Raises:
            CommitCorruptedError: If the text is not a commit record
        """
        lines = text.split("\n")
        if lines and lines[-1] == "":
            lines.pop()

        if len(lines) < 4:
            raise CommitCorruptedError(f"Commit {commit_hash} is truncated")

        fields = []
        for line, label in zip(lines[:3], ("Message:", "Timestamp:", "Parent:")):
            if not line.startswith(label):
                raise CommitCorruptedError(
                    f"Commit {commit_hash}: expected {label!r}, got {line!r}"
                )
            fields.append(line[len(label):])
        if lines[3] != "Files:":
            raise CommitCorruptedError(f"Commit {commit_hash}: missing 'Files:' section")

        message = unescape_message(fields[0][1:] if fields[0].startswith(" ") else fields[0])
        try:
            timestamp = int(fields[1].strip())
        except ValueError:
            raise CommitCorruptedError(
                f"Commit {commit_hash}: bad timestamp {fields[1].strip()!r}"
            ) from None
        parent_hash = fields[2].strip()

        return cls(
            hash=commit_hash,
            message=message,
            timestamp=timestamp,
            parent_hash=parent_hash,
            files=tuple(lines[4:]),
        )


class CommitStore:
    """Persists commits and maintains HEAD.

    Attributes:
        repo_dir: Path to .minigit directory
        commits_dir: Directory holding commit files
        head_path: Path to the HEAD file
        hasher: ContentHasher for commit identifiers
    """

    def __init__(self, repo_dir: Path, hasher: Optional[ContentHasher] = None) -> None:
        """Initialize CommitStore.

        Args:
            repo_dir: Path to .minigit directory
            hasher: Hasher for commit identifiers (SHA-256 if omitted)

        Raises:
            ValueError: If repo_dir doesn't exist
        """
        self.repo_dir = Path(repo_dir)
        self.commits_dir = self.repo_dir / COMMITS_DIR
        self.head_path = self.repo_dir / HEAD_FILE
        self.hasher = hasher or ContentHasher()

        if not self.repo_dir.exists():
            raise ValueError(f"Repository directory not found: {repo_dir}")

    def commit(
        self,
        message: str,
        timestamp: int,
        parent_hash: str,
        files: Iterable[str],
    ) -> Commit:
        """Create, persist and check out a new commit.

        The commit file is written before HEAD moves; if HEAD cannot be
        written the commit file is removed again, so a failure never leaves a
        half-recorded commit behind.

        Args:
            message: Commit message
            timestamp: Seconds since the epoch
            parent_hash: Current HEAD, empty for the first commit
            files: Staged paths in discovery order

        Returns:
            The persisted commit

        Raises:
            NothingToCommitError: If ``files`` is empty
            CommitNotFoundError: If ``parent_hash`` names no stored commit
            CommitCollisionError: If the new hash is already taken
            PersistenceError: If the commit or HEAD cannot be written
        """
        files = tuple(files)
        if not files:
            raise NothingToCommitError()

        parent_hash = parent_hash or ""
        if parent_hash and not self.commit_exists(parent_hash):
            raise CommitNotFoundError(f"Parent commit not found: {parent_hash}")

        timestamp = int(timestamp)
        commit_hash = self.hasher.commit_hash(message, timestamp, parent_hash, files)
        if self.commit_exists(commit_hash):
            raise CommitCollisionError(commit_hash)

        commit = Commit(
            hash=commit_hash,
            message=message,
            timestamp=timestamp,
            parent_hash=parent_hash,
            files=files,
        )

        commit_path = self._write_commit_file(commit)
        try:
            self.write_head(commit.hash)
        except PersistenceError:
            try:
                commit_path.unlink()
            except OSError as e:
                logger.error("Failed to remove orphan commit %s: %s", commit.hash, e)
            raise

        logger.info("Committed with hash: %s", commit.hash)
        return commit

    def read_commit(self, commit_hash: str, verify_hash: bool = True) -> Commit:
        """Read a commit record from disk.

        Args:
            commit_hash: Commit hash
            verify_hash: Recompute the hash and compare (default: True)

        Returns:
            Parsed commit

        Raises:
            CommitNotFoundError: If the commit does not exist
            CommitCorruptedError: If it cannot be parsed or fails verification
            ValueError: If commit_hash is not a valid identifier
        """
        self._validate_hash(commit_hash)

        commit_path = self.commits_dir / commit_hash
        try:
            text = commit_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise CommitNotFoundError(f"Commit not found: {commit_hash}") from None
        except (OSError, UnicodeDecodeError) as e:
            raise CommitCorruptedError(f"Failed to read commit {commit_hash}: {e}") from e

        commit = Commit.parse(commit_hash, text)

        if verify_hash:
            actual = self.hasher.commit_hash(
                commit.message, commit.timestamp, commit.parent_hash, commit.files
            )
            if actual != commit_hash:
                raise CommitCorruptedError(
                    f"Commit hash mismatch: expected {commit_hash}, got {actual}"
                )

        return commit

    def commit_exists(self, commit_hash: str) -> bool:
        if not self.hasher.is_valid(commit_hash):
            return False
        return (self.commits_dir / commit_hash).is_file()

    def list_hashes(self) -> List[str]:
        """Return the hashes of all stored commits, sorted."""
        if not self.commits_dir.exists():
            return []
        return sorted(
            p.name
            for p in self.commits_dir.iterdir()
            if p.is_file() and self.hasher.is_valid(p.name)
        )

    def read_head(self) -> str:
        """Return the current head commit hash, or "" if there is none.

        A HEAD still holding a symbolic name (a fresh repository) counts as
        no head. Any other value is returned as is, even when no such commit
        is stored, so a damaged history shows up when it is walked.
        """
        try:
            content = self.head_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return ""

        value = content[len(HEAD_PREFIX):] if content.startswith(HEAD_PREFIX) else content
        value = value.strip()
        if not value or value.startswith("refs/"):
            return ""

        if not self.commit_exists(value):
            logger.warning("HEAD names missing commit %s", value)
        return value

    def write_head(self, value: str = DEFAULT_BRANCH_REF) -> None:
        """Overwrite HEAD with ``ref: <value>``.

        Raises:
            PersistenceError: If HEAD cannot be written
        """
        try:
            atomic_write(self.head_path, f"{HEAD_PREFIX}{value}\n".encode("utf-8"))
        except OSError as e:
            logger.error("Failed to write HEAD: %s", e)
            raise PersistenceError(f"Failed to write HEAD: {e}") from e

    def _write_commit_file(self, commit: Commit) -> Path:
        """Write a commit to disk.

        Raises:
            PersistenceError: If write fails
        """
        commit_path = self.commits_dir / commit.hash
        try:
            self.commits_dir.mkdir(parents=True, exist_ok=True)
            atomic_write(commit_path, commit.serialize().encode("utf-8"))
        except OSError as e:
            logger.error("Failed to save commit %s: %s", commit.hash, e)
            raise PersistenceError(f"Failed to write commit file: {e}") from e
        return commit_path

    def _validate_hash(self, commit_hash: str) -> None:
        if not self.hasher.is_valid(commit_hash):
            raise ValueError(
                f"Invalid {self.hasher.algorithm} hash: {commit_hash!r}"
            )
