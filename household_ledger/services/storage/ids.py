"""
Surrogate id allocation for append-only tables.

The row store has no auto-increment, so ids are derived from the rows
already present. Doing that naively (fetch, take max, add one, append)
lets two overlapping requests pick the same id. The allocator closes
that gap within a process:

- one asyncio lock per table acts as a single-writer queue; the caller
  re-reads the table *inside* the lock, so the snapshot is current
- a per-table counter remembers the last id issued, so ids stay
  monotonic even when a previous append has not become visible yet

Writers in other processes are not coordinated.
"""

import asyncio
from collections import defaultdict
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator, Iterable


class IdAllocator:
    """Issues monotonically increasing integer ids per table."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._last_issued: dict[str, int] = {}

    @asynccontextmanager
    async def serialized(self, *tables: str) -> AsyncIterator[None]:
        """
        Hold the write lock of every given table.

        Locks are taken in sorted order so two multi-table writers
        cannot deadlock.
        """
        async with AsyncExitStack() as stack:
            for table in sorted(set(tables)):
                await stack.enter_async_context(self._locks[table])
            yield

    def issue(
        self,
        table: str,
        existing_ids: Iterable[int],
        count: int = 1,
        floor: int = 0,
    ) -> list[int]:
        """
        Reserve `count` consecutive ids for `table`.

        Must be called while holding `serialized(table)`. The first id is
        one above the largest of: the ids in the snapshot, the last id
        this allocator issued, and `floor`.
        """
        if count < 1:
            raise ValueError("count must be at least 1")

        start = max(
            max(existing_ids, default=0),
            self._last_issued.get(table, 0),
            floor,
        ) + 1
        ids = list(range(start, start + count))
        self._last_issued[table] = ids[-1]
        return ids

    def last_issued(self, table: str) -> int:
        return self._last_issued.get(table, 0)
