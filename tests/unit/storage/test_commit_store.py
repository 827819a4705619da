"""Unit tests for CommitStore and the commit file format."""

from pathlib import Path

import pytest

from minigit.errors import (
    CommitCollisionError,
    CommitCorruptedError,
    CommitNotFoundError,
    NothingToCommitError,
    PersistenceError,
)
from minigit.storage.commit_store import Commit, CommitStore, escape_message, unescape_message
from minigit.storage.hashing import ContentHasher


@pytest.fixture
def commit_store(repo_dir: Path) -> CommitStore:
    store = CommitStore(repo_dir)
    store.write_head("refs/master")
    return store


class TestCommitStoreInit:
    def test_paths(self, repo_dir: Path) -> None:
        store = CommitStore(repo_dir)
        assert store.commits_dir == repo_dir / "commits"
        assert store.head_path == repo_dir / "HEAD"

    def test_nonexistent_dir(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="not found"):
            CommitStore(tmp_path / "missing")


class TestCreateCommit:
    """Test commit creation."""

    def test_commit_basic(self, commit_store: CommitStore) -> None:
        commit = commit_store.commit("first", 1700000000, "", ["a.txt", "b.txt"])

        assert commit.message == "first"
        assert commit.timestamp == 1700000000
        assert commit.parent_hash == ""
        assert commit.files == ("a.txt", "b.txt")
        assert commit.is_root
        assert commit_store.commit_exists(commit.hash)

    def test_commit_file_format(self, commit_store: CommitStore) -> None:
        commit = commit_store.commit("first", 42, "", ["a.txt", "dir/b.txt"])

        text = (commit_store.commits_dir / commit.hash).read_text(encoding="utf-8")
        assert text == (
            "Message: first\n"
            "Timestamp: 42\n"
            "Parent: \n"
            "Files:\n"
            "a.txt\n"
            "dir/b.txt\n"
        )

    def test_commit_updates_head(self, commit_store: CommitStore) -> None:
        commit = commit_store.commit("first", 1, "", ["a.txt"])

        assert commit_store.head_path.read_text() == f"ref: {commit.hash}\n"
        assert commit_store.read_head() == commit.hash

    def test_commit_chain(self, commit_store: CommitStore) -> None:
        first = commit_store.commit("first", 1, "", ["a.txt"])
        second = commit_store.commit("second", 2, first.hash, ["b.txt"])

        assert second.parent_hash == first.hash
        assert not second.is_root
        assert commit_store.read_head() == second.hash

    def test_empty_files_rejected(self, commit_store: CommitStore) -> None:
        with pytest.raises(NothingToCommitError):
            commit_store.commit("nothing", 1, "", [])

        assert commit_store.list_hashes() == []
        assert commit_store.read_head() == ""

    def test_unknown_parent_rejected(self, commit_store: CommitStore) -> None:
        with pytest.raises(CommitNotFoundError, match="Parent"):
            commit_store.commit("orphan", 1, "f" * 64, ["a.txt"])

    def test_collision_rejected(self, repo_dir: Path) -> None:
        """Identical checksum commits cannot overwrite each other."""
        store = CommitStore(repo_dir, ContentHasher("checksum"))
        first = store.commit("same", 10, "", ["a.txt"])

        with pytest.raises(CommitCollisionError):
            store.commit("same", 10, first.hash, ["a.txt"])

        assert store.read_head() == first.hash

    def test_head_write_failure_removes_commit(self, commit_store: CommitStore) -> None:
        commit_store.head_path.unlink()
        commit_store.head_path.mkdir()

        with pytest.raises(PersistenceError, match="HEAD"):
            commit_store.commit("first", 1, "", ["a.txt"])

        assert commit_store.list_hashes() == []

    def test_commit_write_failure(self, commit_store: CommitStore) -> None:
        commit_store.commits_dir.rmdir()
        commit_store.commits_dir.write_text("blocked")

        with pytest.raises(PersistenceError, match="commit file"):
            commit_store.commit("first", 1, "", ["a.txt"])

        assert commit_store.read_head() == ""
        assert commit_store.head_path.read_text() == "ref: refs/master\n"


class TestReadCommit:
    """Test reading commits back."""

    def test_read_roundtrip(self, commit_store: CommitStore) -> None:
        commit = commit_store.commit("first", 5, "", ["a.txt"])
        assert commit_store.read_commit(commit.hash) == commit

    def test_multiline_message(self, commit_store: CommitStore) -> None:
        message = "subject\n\nbody with \\ backslash"
        commit = commit_store.commit(message, 5, "", ["a.txt"])

        text = (commit_store.commits_dir / commit.hash).read_text()
        assert text.splitlines()[0] == "Message: subject\\n\\nbody with \\\\ backslash"
        assert commit_store.read_commit(commit.hash).message == message

    def test_missing_commit(self, commit_store: CommitStore) -> None:
        with pytest.raises(CommitNotFoundError):
            commit_store.read_commit("0" * 64)

    def test_invalid_hash(self, commit_store: CommitStore) -> None:
        with pytest.raises(ValueError):
            commit_store.read_commit("../HEAD")

    def test_tampered_commit(self, commit_store: CommitStore) -> None:
        commit = commit_store.commit("first", 5, "", ["a.txt"])
        path = commit_store.commits_dir / commit.hash
        path.write_text(path.read_text().replace("first", "forged"))

        with pytest.raises(CommitCorruptedError, match="mismatch"):
            commit_store.read_commit(commit.hash)

    def test_garbage_commit(self, commit_store: CommitStore) -> None:
        bogus = "a" * 64
        (commit_store.commits_dir / bogus).write_text("not a commit\n")

        with pytest.raises(CommitCorruptedError):
            commit_store.read_commit(bogus)


class TestParse:
    def test_parse_plain_record(self) -> None:
        text = "Message: first\nTimestamp: 1700000000\nParent: \nFiles:\na.txt\n"
        commit = Commit.parse("123", text)

        assert commit.message == "first"
        assert commit.timestamp == 1700000000
        assert commit.parent_hash == ""
        assert commit.files == ("a.txt",)

    def test_parse_tolerates_missing_space_after_parent(self) -> None:
        text = "Message: m\nTimestamp: 1\nParent:456\nFiles:\n"
        assert Commit.parse("1", text).parent_hash == "456"

    def test_parse_bad_timestamp(self) -> None:
        with pytest.raises(CommitCorruptedError, match="timestamp"):
            Commit.parse("1", "Message: m\nTimestamp: soon\nParent: \nFiles:\n")

    def test_parse_missing_files_header(self) -> None:
        with pytest.raises(CommitCorruptedError, match="Files"):
            Commit.parse("1", "Message: m\nTimestamp: 1\nParent: \na.txt\n")

    def test_escape_roundtrip(self) -> None:
        for message in ["plain", "a\nb", "back\\slash", "\\n literal", "cr\r\nlf"]:
            escaped = escape_message(message)
            assert "\n" not in escaped
            assert unescape_message(escaped) == message


class TestHead:
    def test_fresh_head_is_empty(self, commit_store: CommitStore) -> None:
        assert commit_store.read_head() == ""

    def test_missing_head_file(self, repo_dir: Path) -> None:
        assert CommitStore(repo_dir).read_head() == ""

    def test_head_naming_missing_commit_is_kept(self, commit_store: CommitStore) -> None:
        commit_store.write_head("f" * 64)
        assert commit_store.read_head() == "f" * 64

    def test_commit_on_missing_head_refused(self, commit_store: CommitStore) -> None:
        commit_store.write_head("f" * 64)

        with pytest.raises(CommitNotFoundError, match="Parent"):
            commit_store.commit("next", 1, commit_store.read_head(), ["a.txt"])

        assert commit_store.list_hashes() == []
