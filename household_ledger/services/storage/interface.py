"""
Abstract Row Store Interface

DESIGN DECISION: We define an abstract interface for the row store.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep ledger logic decoupled from the spreadsheet client

The interface is intentionally tiny - a table can only be read in full
and appended to. There is no update or delete.
"""

from abc import ABC, abstractmethod

from household_ledger.models.ledger import StoreInfo


Row = dict[str, str]


class RowStoreInterface(ABC):
    """
    Abstract interface for a table-like external store.

    Rows come back as {column_name: cell_text} in append order.
    """

    @abstractmethod
    async def connect(self) -> StoreInfo:
        """
        Establish the connection to the backing store.

        Called once at process start. Implementations must raise
        StorageConnectionError if the store cannot be reached.

        Returns:
            Description of the connected store
        """
        pass

    @abstractmethod
    async def fetch_all(self, table: str) -> list[Row]:
        """
        Fetch every row of a table.

        Args:
            table: Logical table name (see models.ledger.Table)

        Returns:
            All non-blank rows in append order

        Raises:
            TableNotFoundError: If the table does not exist
            StorageError: If the store cannot be read
        """
        pass

    @abstractmethod
    async def append_rows(
        self,
        table: str,
        rows: list[dict[str, object]],
    ) -> list[Row]:
        """
        Append rows to a table in a single store call.

        Args:
            table: Logical table name
            rows: Field values keyed by column name. Missing columns
                  are written as empty cells.

        Returns:
            The rows as stored (every value rendered as text)

        Raises:
            TableNotFoundError: If the table does not exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def describe(self) -> StoreInfo:
        """
        Probe the store and describe it.

        Never raises; failures are reported in the returned StoreInfo.
        """
        pass

    async def append(self, table: str, fields: dict[str, object]) -> Row:
        """Append a single row and return it as stored."""
        stored = await self.append_rows(table, [fields])
        return stored[0]


class StorageError(Exception):
    """Base exception for row store operations."""
    pass


class TableNotFoundError(StorageError):
    """The requested table does not exist in the store."""

    def __init__(self, table: str):
        self.table = table
        super().__init__(f"Table not found: {table}")


class StorageConnectionError(StorageError):
    """Could not connect to the storage backend."""
    pass
