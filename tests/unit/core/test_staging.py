"""Unit tests for StagingArea."""

import json
from pathlib import Path

import pytest

from minigit.core.staging import StagedFile, StagingArea
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


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a workspace with a .minigit layout."""
    workspace_root = tmp_path / "workspace"
    workspace_root.mkdir()

    minigit = workspace_root / ".minigit"
    minigit.mkdir()
    (minigit / "objects").mkdir()

    return workspace_root


@pytest.fixture
def object_store(workspace: Path) -> ObjectStore:
    return ObjectStore(workspace / ".minigit")


@pytest.fixture
def staging(workspace: Path, object_store: ObjectStore) -> StagingArea:
    return StagingArea(workspace, object_store)


class TestStagingAreaInit:
    def test_init_valid_workspace(self, workspace: Path, object_store: ObjectStore) -> None:
        staging = StagingArea(workspace, object_store)

        assert staging.workspace_root == workspace.resolve()
        assert staging.index_path == workspace / ".minigit" / "index"
        assert staging.is_empty()

    def test_init_no_minigit(self, tmp_path: Path, object_store: ObjectStore) -> None:
        with pytest.raises(NotARepositoryError, match="Not a MiniGit repository"):
            StagingArea(tmp_path, object_store)


class TestStage:
    """Test adding files to the staging area."""

    def test_stage_single_file(self, staging: StagingArea, workspace: Path) -> None:
        (workspace / "a.txt").write_text("hi")

        staged = staging.stage("a.txt")

        assert staged == StagedFile(path="a.txt", blob_hash=staging.object_store.hasher.hash(b"hi"))
        assert "a.txt" in staging
        assert len(staging) == 1

    def test_stage_writes_blob(self, staging: StagingArea, workspace: Path) -> None:
        (workspace / "a.txt").write_bytes(b"content")

        staged = staging.stage("a.txt")

        assert staging.object_store.read_blob(staged.blob_hash) == b"content"

    def test_stage_absolute_path(self, staging: StagingArea, workspace: Path) -> None:
        (workspace / "sub").mkdir()
        target = workspace / "sub" / "b.txt"
        target.write_text("b")

        assert staging.stage(target).path == "sub/b.txt"

    def test_discovery_order_kept(self, staging: StagingArea, workspace: Path) -> None:
        for name in ["c.txt", "a.txt", "b.txt"]:
            (workspace / name).write_text(name)
            staging.stage(name)

        assert staging.paths() == ("c.txt", "a.txt", "b.txt")

    def test_stage_twice(self, staging: StagingArea, workspace: Path) -> None:
        """A second stage reports AlreadyStaged and changes nothing."""
        (workspace / "a.txt").write_text("hi")
        staging.stage("a.txt")

        with pytest.raises(AlreadyStagedError) as exc_info:
            staging.stage("a.txt")

        assert exc_info.value.path == "a.txt"
        assert len(staging) == 1

    def test_stage_twice_does_not_rehash(
        self, staging: StagingArea, workspace: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (workspace / "a.txt").write_text("hi")
        staging.stage("a.txt")
        (workspace / "a.txt").write_text("changed")

        calls = []
        monkeypatch.setattr(staging.object_store, "write_blob", lambda c: calls.append(c))

        with pytest.raises(AlreadyStagedError):
            staging.stage("a.txt")
        assert calls == []

    def test_identical_content_deduplicated(self, staging: StagingArea, workspace: Path) -> None:
        (workspace / "one.txt").write_text("same")
        (workspace / "two.txt").write_text("same")

        first = staging.stage("one.txt")
        second = staging.stage("two.txt")

        assert first.blob_hash == second.blob_hash
        assert staging.object_store.list_hashes() == [first.blob_hash]
        assert len(staging) == 2

    def test_stage_nonexistent_file(self, staging: StagingArea) -> None:
        with pytest.raises(FileNotFoundError, match="File not found"):
            staging.stage("missing.txt")

        assert staging.is_empty()
        assert staging.object_store.list_hashes() == []

    def test_stage_directory(self, staging: StagingArea, workspace: Path) -> None:
        (workspace / "dir").mkdir()

        with pytest.raises(FileNotFoundError):
            staging.stage("dir")

    def test_stage_outside_workspace(self, staging: StagingArea, tmp_path: Path) -> None:
        outside = tmp_path / "outside.txt"
        outside.write_text("x")

        with pytest.raises(OutsideRepositoryError, match="outside"):
            staging.stage(outside)

    def test_stage_parent_traversal(self, staging: StagingArea, tmp_path: Path) -> None:
        (tmp_path / "outside.txt").write_text("x")

        with pytest.raises(OutsideRepositoryError):
            staging.stage("../outside.txt")

    def test_stage_repository_file(self, staging: StagingArea, workspace: Path) -> None:
        (workspace / ".minigit" / "HEAD").write_text("ref: refs/master\n")

        with pytest.raises(OutsideRepositoryError, match="inside the repository"):
            staging.stage(".minigit/HEAD")

    def test_stage_workspace_root(self, staging: StagingArea) -> None:
        with pytest.raises(InvalidPathError):
            staging.stage(".")

    def test_stage_path_with_newline(self, staging: StagingArea, workspace: Path) -> None:
        (workspace / "bad\nname").write_text("x")

        with pytest.raises(InvalidPathError, match="line break"):
            staging.stage("bad\nname")


class TestUnstage:
    def test_unstage(self, staging: StagingArea, workspace: Path) -> None:
        (workspace / "a.txt").write_text("hi")
        staged = staging.stage("a.txt")

        assert staging.unstage("a.txt") == "a.txt"
        assert staging.is_empty()
        # Blob is kept
        assert staging.object_store.blob_exists(staged.blob_hash)

    def test_unstage_not_staged(self, staging: StagingArea) -> None:
        with pytest.raises(NotStagedError):
            staging.unstage("a.txt")


class TestDrain:
    """Test the commit hand-off."""

    def test_drain_clears_on_success(self, staging: StagingArea, workspace: Path) -> None:
        (workspace / "a.txt").write_text("hi")
        staging.stage("a.txt")

        with staging.drain() as files:
            assert files == ("a.txt",)

        assert staging.is_empty()

    def test_drain_keeps_on_failure(self, staging: StagingArea, workspace: Path) -> None:
        (workspace / "a.txt").write_text("hi")
        staging.stage("a.txt")

        with pytest.raises(RuntimeError):
            with staging.drain():
                raise RuntimeError("commit failed")

        assert staging.paths() == ("a.txt",)

    def test_restage_after_drain(self, staging: StagingArea, workspace: Path) -> None:
        (workspace / "a.txt").write_text("hi")
        staging.stage("a.txt")
        with staging.drain():
            pass

        assert staging.stage("a.txt").path == "a.txt"


class TestIndexPersistence:
    def test_index_written(self, staging: StagingArea, workspace: Path) -> None:
        (workspace / "a.txt").write_text("hi")
        staged = staging.stage("a.txt")

        index = json.loads(staging.index_path.read_text())
        assert index == {"version": 1, "entries": {"a.txt": staged.blob_hash}}

    def test_index_reloaded(
        self, staging: StagingArea, workspace: Path, object_store: ObjectStore
    ) -> None:
        (workspace / "b.txt").write_text("b")
        (workspace / "a.txt").write_text("a")
        staging.stage("b.txt")
        staging.stage("a.txt")

        reopened = StagingArea(workspace, object_store)
        assert reopened.paths() == ("b.txt", "a.txt")

    def test_corrupted_index(self, workspace: Path, object_store: ObjectStore) -> None:
        (workspace / ".minigit" / "index").write_text("{not json")

        with pytest.raises(StagingError, match="Corrupted"):
            StagingArea(workspace, object_store)

    def test_unsupported_version(self, workspace: Path, object_store: ObjectStore) -> None:
        (workspace / ".minigit" / "index").write_text('{"version": 9, "entries": {}}')

        with pytest.raises(StagingError, match="Unsupported index version"):
            StagingArea(workspace, object_store)

    def test_index_write_failure_rolls_back(
        self, staging: StagingArea, workspace: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (workspace / "a.txt").write_text("hi")

        def fail() -> None:
            raise PersistenceError("disk full")

        monkeypatch.setattr(staging, "_save_index", fail)

        with pytest.raises(PersistenceError):
            staging.stage("a.txt")
        assert staging.is_empty()
