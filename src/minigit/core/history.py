"""Commit history traversal."""

import logging
from typing import Iterator, Optional, Set

from minigit.errors import CommitCorruptedError, CommitNotFoundError, HistoryTruncatedError
from minigit.storage import Commit, CommitStore

logger = logging.getLogger(__name__)


class HistoryWalker:
    """Follows parent references from a commit back to the root.

    Attributes:
        commit_store: Store the commits are loaded from
    """

    def __init__(self, commit_store: CommitStore) -> None:
        self.commit_store = commit_store

    def walk(self, start_hash: str, max_count: Optional[int] = None) -> Iterator[Commit]:
        """Yield commits from ``start_hash`` back to the root, newest first.

        The generator ends normally at a commit with an empty parent. If a
        commit on the chain cannot be loaded it raises
        :class:`HistoryTruncatedError` after yielding everything before it,
        so callers can tell a damaged history from a complete one.

        Args:
            start_hash: First commit to load; empty yields nothing
            max_count: Stop after this many commits

        Raises:
            HistoryTruncatedError: On a missing, corrupt or cyclic chain
        """
        current = start_hash
        seen: Set[str] = set()
        count = 0

        while current:
            if max_count is not None and count >= max_count:
                return

            if current in seen:
                raise HistoryTruncatedError(current, "cycle in parent chain", count)

            try:
                commit = self.commit_store.read_commit(current)
            except (CommitNotFoundError, CommitCorruptedError, ValueError) as e:
                logger.warning("Failed to read commit: %s (%s)", current, e)
                raise HistoryTruncatedError(current, str(e), count) from e

            seen.add(current)
            yield commit
            count += 1
            current = commit.parent_hash
