"""
Base Storage Module

This module defines the key-value storage capability injected into the
migration manager. Values are opaque strings; the manager owns their format.
Concrete adapters (memory, file, SQL) implement last-write-wins semantics,
which is the only consistency contract the core requires from persistence.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStorage(ABC):
    """
    Abstract interface for key-value storage backends.

    Implementations must raise StorageError (never a backend-specific
    exception) when an operation fails.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the name of this storage backend."""
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Retrieve the value stored under a key.

        Args:
            key: The storage key

        Returns:
            The stored string, or None if the key is absent
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Store a value under a key, replacing any previous value.

        Args:
            key: The storage key
            value: The string to store
        """
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """
        Remove a key. Removing an absent key is not an error.

        Args:
            key: The storage key
        """
        pass

    def contains(self, key: str) -> bool:
        """Check whether a key currently holds a value."""
        return self.get(key) is not None
