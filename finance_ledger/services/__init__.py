"""Services package."""

from finance_ledger.services.storage import (
    ConnectionError,
    CorruptDataError,
    EntityStoreInterface,
    GoogleSheetsClient,
    GoogleSheetsEntityStore,
    InMemoryEntityStore,
    JsonFileEntityStore,
    StorageError,
)

__all__ = [
    # Storage services
    "ConnectionError",
    "CorruptDataError",
    "EntityStoreInterface",
    "GoogleSheetsClient",
    "GoogleSheetsEntityStore",
    "InMemoryEntityStore",
    "JsonFileEntityStore",
    "StorageError",
]
