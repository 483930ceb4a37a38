"""
Storage Services Package

Provides the abstract row store interface and its implementations.
Google Sheets is the production backend; the in-memory store backs tests.
"""

from household_ledger.services.storage.interface import (
    Row,
    RowStoreInterface,
    StorageConnectionError,
    StorageError,
    TableNotFoundError,
)
from household_ledger.services.storage.ids import IdAllocator
from household_ledger.services.storage.memory import InMemoryRowStore
from household_ledger.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsRowStore,
    clean_private_key,
)

__all__ = [
    # Interface
    "Row",
    "RowStoreInterface",
    # Exceptions
    "StorageConnectionError",
    "StorageError",
    "TableNotFoundError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsRowStore",
    "InMemoryRowStore",
    # Helpers
    "IdAllocator",
    "clean_private_key",
]
