"""
Abstract Entity Store Interface

DESIGN DECISION: The ledger treats persistence as a key-value store of
whole collections. This allows us to:
1. Keep a local JSON document as the default backend
2. Use in-memory storage for testing
3. Sync to Google Sheets without touching ledger logic
4. Write several collections in one atomic call where the backend can

The interface is intentionally tiny - we're not building a database.
Values are JSON-compatible (dicts, lists, strings, numbers).
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class EntityStoreInterface(ABC):
    """
    Abstract interface for the entity store.

    Any backend (JSON file, Google Sheets, memory, ...) must implement
    these methods.
    """

    @abstractmethod
    async def load(self, key: str) -> Optional[Any]:
        """
        Load the value stored under a logical key.

        Args:
            key: Logical collection name

        Returns:
            The stored value, or None if the key was never written

        Raises:
            StorageError: If the backend cannot be read
            CorruptDataError: If the stored value cannot be decoded
        """
        pass

    @abstractmethod
    async def save(self, key: str, value: Any) -> None:
        """
        Replace the value stored under a logical key.

        Raises:
            StorageError: If the write fails
        """
        pass

    async def save_many(self, items: dict[str, Any]) -> None:
        """
        Replace several keys.

        The default writes one key after another and gives no atomicity.
        Backends that can write everything in one operation override this.
        """
        for key, value in items.items():
            await self.save(key, value)

    @abstractmethod
    async def delete(self, key: str) -> None:
        """
        Remove a key. Removing a missing key is a no-op.
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptDataError(StorageError):
    """Stored data exists but cannot be decoded."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
