"""In-process shared table.

Rows live in an ``OrderedDict`` guarded by a ``threading.Lock``; insertion
order doubles as eviction order. Only shared between the coroutines and
threads of one process, which is enough for single-process deployments and
tests.
"""

import threading
from collections import OrderedDict
from typing import Any, Optional

from devsocial.core.exceptions import SharedTableError
from devsocial.core.logging import get_channel_logger
from devsocial.core.protocols.shared_table import SharedTable
from devsocial.schemas.shared_table import ColumnType, TableSchema

log = get_channel_logger("shared_tables")


class InMemorySharedTable(SharedTable):
    """Fixed-capacity table evicting its oldest row when full."""

    def __init__(self, schema: TableSchema) -> None:
        self._schema = schema
        self._rows: OrderedDict[str, dict[str, Any]] = OrderedDict()
        self._lock = threading.Lock()
        self.evictions = 0

    @property
    def schema(self) -> TableSchema:
        return self._schema

    async def set(self, key: str, row: dict[str, Any]) -> None:
        coerced = self._schema.coerce_row(row)
        with self._lock:
            self._store(key, coerced)

    async def get(self, key: str) -> Optional[dict[str, Any]]:
        with self._lock:
            row = self._rows.get(key)
            return dict(row) if row is not None else None

    async def incr(
        self,
        key: str,
        column: str,
        amount: int = 1,
        initial: Optional[dict[str, Any]] = None,
    ) -> int:
        if self._schema.column(column).type != ColumnType.INT:
            raise SharedTableError(self._schema.name, f"column '{column}' is not an int column")
        with self._lock:
            row = self._rows.get(key)
            if row is None:
                row = self._schema.coerce_row(initial or {})
                self._store(key, row)
            row[column] += amount
            return row[column]

    async def delete(self, key: str) -> bool:
        with self._lock:
            return self._rows.pop(key, None) is not None

    async def count(self) -> int:
        with self._lock:
            return len(self._rows)

    def _store(self, key: str, row: dict[str, Any]) -> None:
        if key not in self._rows:
            while len(self._rows) >= self._schema.size:
                evicted, _ = self._rows.popitem(last=False)
                self.evictions += 1
                log.debug(f"Shared table '{self._schema.name}' full, evicted row '{evicted}'")
        self._rows[key] = row
