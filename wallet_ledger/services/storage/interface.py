"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for collection storage.
This allows us to:
1. Use a JSON directory the way the dashboard used localStorage
2. Use in-memory storage for testing
3. Swap in a real database later without touching the ledger logic

The interface is intentionally tiny. The store reads a whole collection,
mutates it in memory, and writes the whole collection back. There are no
partial updates and no queries at this layer.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


# Logical collection names shared by every backend
ACCOUNTS = "accounts"
TRANSACTIONS = "transactions"
GOALS = "goals"
FILTER_PRESETS = "filterPresets"
USER = "user"
AUDIT_LOG = "auditLog"

COLLECTIONS = (ACCOUNTS, TRANSACTIONS, GOALS, FILTER_PRESETS, USER, AUDIT_LOG)


class CollectionStorageInterface(ABC):
    """
    Abstract key/value storage keyed by collection name.

    Values are JSON-compatible (lists of dicts, or a single dict for the
    user profile).
    """

    @abstractmethod
    async def get(self, collection: str) -> Optional[Any]:
        """
        Read a whole collection.

        Args:
            collection: Logical collection name (e.g. 'accounts')

        Returns:
            The stored JSON value, or None if the collection was never written

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def set(self, collection: str, value: Any) -> None:
        """
        Replace a whole collection.

        Args:
            collection: Logical collection name
            value: JSON-compatible value to store

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def remove(self, collection: str) -> bool:
        """
        Delete a collection.

        Returns:
            True if something was removed, False if it did not exist
        """
        pass

    async def has(self, collection: str) -> bool:
        """Check whether a collection has ever been written."""
        return await self.get(collection) is not None


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageConnectionError(StorageError):
    """Could not reach the storage backend."""
    pass
