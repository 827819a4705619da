"""Content hashing for MiniGit.

Two algorithms are available:

``sha256``
    Hex SHA-256 digest. Commit hashes cover message, timestamp, parent and
    the ordered file list.

``checksum``
    The legacy additive checksum: the sum of all byte values rendered as a
    decimal string. It is not collision resistant, and commit hashes built
    from it ignore both file order and the parent. It exists so repositories
    hashed with the older additive scheme can still be read.
"""

import hashlib
from typing import Iterable, Optional

from minigit.constants import (
    DEFAULT_HASH_ALGORITHM,
    HASH_ALGORITHMS,
    HASH_CHECKSUM,
    HASH_SHA256,
    SHA256_LENGTH,
)
from minigit.errors import ConfigError

_HEX_DIGITS = frozenset("0123456789abcdef")


def checksum(content: bytes) -> int:
    """Sum of the unsigned byte values of ``content``."""
    return sum(content)


def validate_hash_algorithm(value: Optional[str]) -> str:
    """Normalize and check a hash algorithm name.

    Raises:
        ConfigError: If the name is not a supported algorithm
    """
    name = (value or "").strip().lower()
    if name not in HASH_ALGORITHMS:
        raise ConfigError(
            f"Unknown hash algorithm: {value!r} (expected one of {', '.join(HASH_ALGORITHMS)})"
        )
    return name


class ContentHasher:
    """Deterministic mapping from bytes to an identifier string.

    Attributes:
        algorithm: Either ``"sha256"`` or ``"checksum"``

    Example:
        >>> ContentHasher("checksum").hash(b"hi")
        '209'
    """

    def __init__(self, algorithm: str = DEFAULT_HASH_ALGORITHM) -> None:
        self.algorithm = validate_hash_algorithm(algorithm)

    def hash(self, content: bytes) -> str:
        """Hash blob content.

        Args:
            content: Any bytes (empty included)

        Returns:
            Identifier string for the content
        """
        if self.algorithm == HASH_CHECKSUM:
            return str(checksum(content))
        return hashlib.sha256(content).hexdigest()

    def commit_hash(
        self,
        message: str,
        timestamp: int,
        parent_hash: str,
        files: Iterable[str],
    ) -> str:
        """Hash the identifying fields of a commit.

        Args:
            message: Commit message
            timestamp: Seconds since the epoch
            parent_hash: Parent commit hash, empty for a root commit
            files: Committed paths in commit order

        Returns:
            Commit identifier
        """
        if self.algorithm == HASH_CHECKSUM:
            total = checksum(message.encode("utf-8")) + int(timestamp)
            for path in files:
                total += checksum(path.encode("utf-8"))
            return str(total)

        # Length-prefix every field so ("ab", "c") and ("a", "bc") differ
        hasher = hashlib.sha256()
        for field in (message, str(int(timestamp)), parent_hash, *files):
            data = field.encode("utf-8")
            hasher.update(f"{len(data)}:".encode("ascii"))
            hasher.update(data)
        return hasher.hexdigest()

    def is_valid(self, value: str) -> bool:
        """Check that ``value`` looks like an identifier of this algorithm.

        Identifiers double as file names, so anything else (including path
        separators) is rejected.
        """
        if not isinstance(value, str) or not value:
            return False

        if self.algorithm == HASH_SHA256:
            return len(value) == SHA256_LENGTH and set(value) <= _HEX_DIGITS

        return value.isascii() and value.isdigit()
