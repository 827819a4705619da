"""Storage layer for MiniGit.

This module provides content hashing, the content-addressable blob store and
commit record persistence.
"""

from minigit.storage.commit_store import Commit, CommitStore
from minigit.storage.hashing import ContentHasher
from minigit.storage.object_store import ObjectStore

__all__ = [
    "ContentHasher",
    "ObjectStore",
    "Commit",
    "CommitStore",
]
