"""Repository configuration for MiniGit.

Configuration is stored in INI format at ``.minigit/config``. Values are
resolved with the following priority (highest first):

1. Environment variables (``MINIGIT_<SECTION>_<KEY>``)
2. Repository config file
3. Fallback value

The hash algorithm is the exception: once a repository has been initialized
its algorithm is fixed by the config file, so objects written by different
algorithms never end up in the same store.
"""

import configparser
import io
import logging
import os
from pathlib import Path
from typing import Optional

from minigit.constants import DEFAULT_HASH_ALGORITHM, ENV_PREFIX
from minigit.errors import ConfigError, PersistenceError
from minigit.storage.fileio import atomic_write
from minigit.storage.hashing import validate_hash_algorithm

logger = logging.getLogger(__name__)


class Config:
    """Reads and writes the repository-local config file.

    Attributes:
        path: Path to the INI file (may not exist yet)
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else None
        self._parser = configparser.ConfigParser()
        if self.path is not None and self.path.exists():
            try:
                self._parser.read(self.path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigError(f"Invalid config file {self.path}: {e}") from e

    def get(self, section: str, key: str, fallback: Optional[str] = None) -> Optional[str]:
        """Get a configuration value.

        Args:
            section: Config section (e.g. 'core')
            key: Config key (e.g. 'hash_algorithm')
            fallback: Default value if not found

        Returns:
            Configuration value or fallback
        """
        env_key = f"{ENV_PREFIX}_{section.upper()}_{key.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is not None:
            return env_value

        return self._parser.get(section, key, fallback=fallback)

    def set(self, section: str, key: str, value: str) -> None:
        """Set a value in memory. Call :meth:`save` to persist it."""
        if not self._parser.has_section(section):
            self._parser.add_section(section)
        self._parser.set(section, key, value)

    def save(self) -> None:
        """Write the config file atomically.

        Raises:
            PersistenceError: If the file cannot be written
        """
        if self.path is None:
            raise ConfigError("Config has no backing file")

        buffer = io.StringIO()
        self._parser.write(buffer)

        try:
            atomic_write(self.path, buffer.getvalue().encode("utf-8"))
        except OSError as e:
            raise PersistenceError(f"Failed to write config: {e}") from e
        logger.debug("Wrote config %s", self.path)

    @property
    def hash_algorithm(self) -> str:
        """Hash algorithm of the repository.

        The file value wins over the environment so an existing repository
        keeps the algorithm it was created with.

        Raises:
            ConfigError: If the configured algorithm is unknown
        """
        value = self._parser.get("core", "hash_algorithm", fallback=None)
        if value is None:
            value = self.get("core", "hash_algorithm", DEFAULT_HASH_ALGORITHM)
        return validate_hash_algorithm(value)

