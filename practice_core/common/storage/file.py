"""
File Storage Backend Module

This module implements a key-value storage backend that keeps one file per
key inside a directory. Writes go through a temporary file and an atomic
replace so a crash never leaves a half-written value behind.
"""

import os
import logging
import hashlib
import tempfile
from pathlib import Path
from typing import Optional, Union

from practice_core.common.exceptions import StorageError
from practice_core.common.storage.base import KeyValueStorage

# Setup logging
logger = logging.getLogger(__name__)


class FileStorage(KeyValueStorage):
    """
    Directory-backed key-value storage.

    Keys are mapped to file names through a SHA-1 digest, so any string is
    a valid key regardless of filesystem restrictions.
    """

    def __init__(self, directory: Union[str, Path], name: str = "file"):
        """
        Initialize the file storage backend.

        Args:
            directory: Directory that holds the value files (created if missing)
            name: Name for this storage backend (default: "file")
        """
        self.directory = Path(directory)
        self._name = name
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create storage directory {self.directory}", original_exception=e)

    @property
    def name(self) -> str:
        """Get the name of this storage backend."""
        return self._name

    def _path_for(self, key: str) -> Path:
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read '{key}'", key=key, original_exception=e)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"Value for '{key}' must be a string, got {type(value).__name__}", key=key)

        path = self._path_for(key)
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except FileNotFoundError:
                    pass
            raise StorageError(f"Failed to write '{key}'", key=key, original_exception=e)

        logger.debug(f"Wrote '{key}' to {path.name}")

    def remove(self, key: str) -> None:
        try:
            self._path_for(key).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to remove '{key}'", key=key, original_exception=e)
