"""
Storage Services Package

Provides the abstract entity store interface and its implementations.
The local JSON file is the default backend; Google Sheets is optional.
"""

from finance_ledger.services.storage.interface import (
    ConnectionError,
    CorruptDataError,
    EntityStoreInterface,
    StorageError,
)
from finance_ledger.services.storage.json_file import JsonFileEntityStore
from finance_ledger.services.storage.memory import InMemoryEntityStore
from finance_ledger.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsEntityStore,
)

__all__ = [
    # Interface
    "EntityStoreInterface",
    # Exceptions
    "ConnectionError",
    "CorruptDataError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsEntityStore",
    "InMemoryEntityStore",
    "JsonFileEntityStore",
]
