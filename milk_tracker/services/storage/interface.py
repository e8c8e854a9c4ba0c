"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for persistence.
This allows us to:
1. Swap the JSON files for a device key-value store later
2. Use in-memory storage for testing
3. Keep the calendar logic decoupled from I/O

The interface is intentionally a plain string key-value store. The core
persists exactly two records (settings and calendarData) as JSON text.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStorageInterface(ABC):
    """
    Abstract interface for key-value storage.

    Values are JSON text. Implementations are asynchronous; the core awaits
    them once at startup and fires writes without waiting afterwards.
    """

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Args:
            key: Record name

        Returns:
            The stored text, or None if nothing is stored

        Raises:
            StorageReadError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """
        Replace the value stored under a key.

        Args:
            key: Record name
            value: JSON text

        Raises:
            StorageWriteError: If the value could not be written
        """
        pass

    @abstractmethod
    async def remove_item(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if something was removed
        """
        pass

    @abstractmethod
    async def keys(self) -> list[str]:
        """All stored keys."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageReadError(StorageError):
    """A stored value could not be read."""
    pass


class StorageWriteError(StorageError):
    """A value could not be written."""
    pass


class InvalidKeyNameError(StorageError):
    """Key cannot be mapped to a storage location."""
    pass
