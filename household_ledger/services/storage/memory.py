"""
In-memory row store.

Behaves like a spreadsheet: every cell is kept as text, columns are fixed
by a header row, and unknown tables raise TableNotFoundError. Used by the
test suite and by the `memory` storage backend.
"""

import copy
from typing import Optional

from household_ledger.models.ledger import TABLE_COLUMNS, StoreInfo
from household_ledger.services.storage.interface import (
    Row,
    RowStoreInterface,
    TableNotFoundError,
)


def render_cell(value: object) -> str:
    """Render a value the way a sheet would display it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    return str(value)


class InMemoryRowStore(RowStoreInterface):
    """Row store held in process memory."""

    def __init__(
        self,
        tables: Optional[dict[str, list[str]]] = None,
        title: str = "In-memory ledger",
    ):
        columns = tables if tables is not None else TABLE_COLUMNS
        self._headers: dict[str, list[str]] = {
            name: list(cols) for name, cols in columns.items()
        }
        self._rows: dict[str, list[Row]] = {name: [] for name in self._headers}
        self._title = title
        self.append_calls = 0

    def _require(self, table: str) -> list[Row]:
        if table not in self._rows:
            raise TableNotFoundError(table)
        return self._rows[table]

    async def connect(self) -> StoreInfo:
        return await self.describe()

    async def fetch_all(self, table: str) -> list[Row]:
        return copy.deepcopy(self._require(table))

    async def append_rows(
        self,
        table: str,
        rows: list[dict[str, object]],
    ) -> list[Row]:
        existing = self._require(table)
        header = self._headers[table]
        stored = [
            {column: render_cell(fields.get(column)) for column in header}
            for fields in rows
        ]
        existing.extend(stored)
        self.append_calls += 1
        return copy.deepcopy(stored)

    async def describe(self) -> StoreInfo:
        return StoreInfo(
            success=True,
            title=self._title,
            sheet_count=len(self._headers),
            sheets=list(self._headers),
        )

    def seed(self, table: str, rows: list[dict[str, object]]) -> None:
        """Load rows synchronously (fixtures and local development)."""
        existing = self._require(table)
        header = self._headers[table]
        existing.extend(
            {column: render_cell(fields.get(column)) for column in header}
            for fields in rows
        )
