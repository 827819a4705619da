"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from minigit.core import Repository


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the caller's MiniGit environment out of the tests."""
    monkeypatch.delenv("MINIGIT_DIR", raising=False)
    monkeypatch.delenv("MINIGIT_CORE_HASH_ALGORITHM", raising=False)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """An empty workspace directory."""
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def repo(workspace: Path) -> Repository:
    """A freshly initialized SHA-256 repository."""
    return Repository.init(workspace)


@pytest.fixture
def checksum_repo(workspace: Path) -> Repository:
    """A freshly initialized repository using the legacy checksum."""
    return Repository.init(workspace, hash_algorithm="checksum")


@pytest.fixture
def repo_dir(tmp_path: Path) -> Path:
    """A bare .minigit directory layout, for testing stores directly."""
    minigit = tmp_path / ".minigit"
    minigit.mkdir()
    (minigit / "objects").mkdir()
    (minigit / "commits").mkdir()
    (minigit / "refs").mkdir()
    return minigit
