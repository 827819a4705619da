"""Core engine layer for MiniGit.

This module provides the staging area, history traversal and the repository
coordinator.
"""

from minigit.core.history import HistoryWalker
from minigit.core.repository import Repository
from minigit.core.results import Status
from minigit.core.staging import StagedFile, StagingArea

__all__ = [
    "HistoryWalker",
    "Repository",
    "Status",
    "StagedFile",
    "StagingArea",
]
