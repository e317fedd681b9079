"""
Memory Storage Backend Module

This module implements an in-memory key-value storage backend. It is the
default backend for tests and for hosts that persist the data themselves.
"""

import logging
import threading
from typing import Dict, List, Optional

from practice_core.common.exceptions import StorageError
from practice_core.common.storage.base import KeyValueStorage

# Setup logging
logger = logging.getLogger(__name__)


class InMemoryStorage(KeyValueStorage):
    """
    In-memory key-value storage.

    A dictionary guarded by a re-entrant lock. Values must be strings, the
    same restriction persistent backends impose.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None, name: str = "memory"):
        """
        Initialize the memory storage backend.

        Args:
            initial: Optional initial contents
            name: Name for this storage backend (default: "memory")
        """
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.RLock()
        self._name = name

    @property
    def name(self) -> str:
        """Get the name of this storage backend."""
        return self._name

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"Value for '{key}' must be a string, got {type(value).__name__}", key=key)
        with self._lock:
            self._data[key] = value
        logger.debug(f"Stored {len(value)} characters under '{key}'")

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> List[str]:
        """Get a snapshot of the stored keys."""
        with self._lock:
            return list(self._data.keys())

    def clear(self) -> None:
        """Remove every key."""
        with self._lock:
            self._data.clear()
