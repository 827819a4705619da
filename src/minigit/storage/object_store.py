"""Content-addressable blob storage for MiniGit.

Blobs are stored flat in .minigit/objects/, one file per blob, named by the
content hash and holding the raw content. Identical content is written once.
"""

import logging
from pathlib import Path
from typing import List, Optional

from minigit.constants import OBJECTS_DIR
from minigit.errors import BlobCorruptedError, BlobNotFoundError, PersistenceError
from minigit.storage.fileio import atomic_write
from minigit.storage.hashing import ContentHasher

logger = logging.getLogger(__name__)


class ObjectStore:
    """Content-addressable storage for file blobs.

    Storage layout:
        .minigit/objects/<hash>

    Attributes:
        repo_dir: Path to the .minigit directory
        objects_dir: Path to the objects directory
        hasher: ContentHasher used to name blobs

    Example:
        >>> store = ObjectStore(Path(".minigit"))
        >>> blob_hash = store.write_blob(b"hi")
        >>> assert store.read_blob(blob_hash) == b"hi"
    """

    def __init__(self, repo_dir: Path, hasher: Optional[ContentHasher] = None) -> None:
        """Initialize the object store.

        Args:
            repo_dir: Path to .minigit directory
            hasher: Hasher to use (SHA-256 if omitted)

        Raises:
            ValueError: If repo_dir doesn't exist
        """
        self.repo_dir = Path(repo_dir)
        self.objects_dir = self.repo_dir / OBJECTS_DIR
        self.hasher = hasher or ContentHasher()

        if not self.repo_dir.exists():
            raise ValueError(f"Repository directory not found: {repo_dir}")

    def write_blob(self, content: bytes) -> str:
        """Hash ``content`` and store it.

        Args:
            content: Binary content to store

        Returns:
            Hash of the content

        Raises:
            PersistenceError: If the write fails
        """
        blob_hash = self.hasher.hash(content)
        self.put(blob_hash, content)
        return blob_hash

    def put(self, blob_hash: str, content: bytes) -> bool:
        """Store ``content`` under ``blob_hash`` unless already present.

        Args:
            blob_hash: Hash of ``content``
            content: Binary content to store

        Returns:
            True if a new object was written, False if it already existed

        Raises:
            ValueError: If blob_hash is malformed or doesn't match content
            PersistenceError: If the write fails
        """
        self._validate_hash(blob_hash)
        if self.hasher.hash(content) != blob_hash:
            raise ValueError(f"Content does not hash to {blob_hash}")

        # Deduplication
        if self.blob_exists(blob_hash):
            logger.debug("Blob %s already stored", blob_hash)
            return False

        blob_path = self._get_blob_path(blob_hash)
        try:
            blob_path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write(blob_path, content)
        except OSError as e:
            logger.error("Failed to write blob file %s: %s", blob_path, e)
            raise PersistenceError(f"Failed to write blob {blob_hash}: {e}") from e

        logger.info("Saved blob: %s", blob_path)
        return True

    def read_blob(self, blob_hash: str, verify_hash: bool = True) -> bytes:
        """Read a blob from the object store.

        Args:
            blob_hash: Hash of the blob
            verify_hash: Whether to recompute and verify hash (default: True)

        Returns:
            Binary content of the blob

        Raises:
            BlobNotFoundError: If blob doesn't exist
            BlobCorruptedError: If the blob is unreadable or hash verification fails
            ValueError: If blob_hash is invalid format
        """
        self._validate_hash(blob_hash)

        blob_path = self._get_blob_path(blob_hash)
        try:
            content = blob_path.read_bytes()
        except FileNotFoundError:
            raise BlobNotFoundError(f"Blob not found: {blob_hash}") from None
        except OSError as e:
            raise BlobCorruptedError(f"Failed to read blob {blob_hash}: {e}") from e

        if verify_hash:
            actual_hash = self.hasher.hash(content)
            if actual_hash != blob_hash:
                raise BlobCorruptedError(
                    f"Blob corrupted: expected {blob_hash}, got {actual_hash}"
                )

        return content

    # Contract names
    get = read_blob

    def blob_exists(self, blob_hash: str) -> bool:
        """Check if a blob exists in the store."""
        if not self.hasher.is_valid(blob_hash):
            return False
        return self._get_blob_path(blob_hash).is_file()

    exists = blob_exists

    def list_hashes(self) -> List[str]:
        """Return the hashes of all stored blobs, sorted."""
        if not self.objects_dir.exists():
            return []
        return sorted(
            p.name
            for p in self.objects_dir.iterdir()
            if p.is_file() and self.hasher.is_valid(p.name)
        )

    def _get_blob_path(self, blob_hash: str) -> Path:
        return self.objects_dir / blob_hash

    def _validate_hash(self, blob_hash: str) -> None:
        """Validate that a hash string is properly formatted.

        Raises:
            ValueError: If hash is invalid format
        """
        if not self.hasher.is_valid(blob_hash):
            raise ValueError(
                f"Invalid {self.hasher.algorithm} hash: {blob_hash!r}"
            )
