"""MiniGit - a minimal local version-control engine.

MiniGit tracks file snapshots as content-addressed blobs, links them into a
commit history through parent references, and keeps a staging area between
the working tree and the repository.
"""

__version__ = "0.1.0"
__author__ = "MiniGit Contributors"

from minigit.core.repository import Repository  # noqa: E402
from minigit.core.results import Status  # noqa: E402

__all__ = ["__version__", "__author__", "Repository", "Status"]
