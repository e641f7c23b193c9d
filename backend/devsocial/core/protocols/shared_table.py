"""Shared table protocol.

A shared table is a fixed-capacity, schema'd row store visible to every
worker process on the host. Writers never fail on a full table: the oldest
row is evicted to make room.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from devsocial.schemas.shared_table import TableSchema


@runtime_checkable
class SharedTable(Protocol):
    """Fixed-capacity keyed table shared across worker processes."""

    @property
    def schema(self) -> TableSchema:
        """Name, capacity and columns of the table."""
        ...

    async def set(self, key: str, row: dict[str, Any]) -> None:
        """Insert or overwrite the row stored under *key*."""
        ...

    async def get(self, key: str) -> Optional[dict[str, Any]]:
        """Return the row for *key*, or ``None`` if absent or evicted."""
        ...

    async def incr(
        self,
        key: str,
        column: str,
        amount: int = 1,
        initial: Optional[dict[str, Any]] = None,
    ) -> int:
        """Atomically add *amount* to an integer column; returns the new value.

        An absent row is created from *initial* (other columns defaulted) in
        the same atomic step, evicting the oldest row if the table is full.
        """
        ...

    async def delete(self, key: str) -> bool:
        """Remove *key*. Returns whether it existed."""
        ...

    async def count(self) -> int:
        """Number of rows currently stored."""
        ...
