"""Services package."""

from household_ledger.services.security import hash_password, verify_password
from household_ledger.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsRowStore,
    IdAllocator,
    InMemoryRowStore,
    RowStoreInterface,
    StorageConnectionError,
    StorageError,
    TableNotFoundError,
)

__all__ = [
    # Security
    "hash_password",
    "verify_password",
    # Storage services
    "GoogleSheetsClient",
    "GoogleSheetsRowStore",
    "IdAllocator",
    "InMemoryRowStore",
    "RowStoreInterface",
    "StorageConnectionError",
    "StorageError",
    "TableNotFoundError",
]
