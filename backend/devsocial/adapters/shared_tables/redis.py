"""Redis-backed shared table.

Visible to every worker process on every host pointing at the same Redis.

Layout for table ``<t>``:
    shared:<t>:row:<key>   hash holding the row's columns
    shared:<t>:order       sorted set of keys scored by insertion sequence
    shared:<t>:seq         insertion sequence counter

When the table is at capacity, inserting a new key evicts the lowest-scored
(oldest) keys first. Overwriting an existing key keeps its position.

Slot reservation, eviction and the write run as one Lua script, so
concurrent writers in different processes cannot push the table past its
capacity or leave a row hash outside the order set.
"""

from typing import Any, Optional

from redis.asyncio import Redis

from devsocial.core.exceptions import SharedTableError
from devsocial.core.logging import get_channel_logger
from devsocial.core.protocols.shared_table import SharedTable
from devsocial.schemas.shared_table import ColumnType, TableSchema

log = get_channel_logger("shared_tables")

# KEYS: order, seq, row
# ARGV: member, size, row prefix, mode ("set" | "incr"), column, amount, field/value pairs...
# Returns {incremented value or 0, number of evicted rows}.
UPSERT_SCRIPT = """
local order, seq, row = KEYS[1], KEYS[2], KEYS[3]
local member, size, prefix, mode = ARGV[1], tonumber(ARGV[2]), ARGV[3], ARGV[4]
local evicted = 0
local fresh = redis.call('ZSCORE', order, member) == false

if fresh then
  local overflow = redis.call('ZCARD', order) - size + 1
  if overflow > 0 then
    local popped = redis.call('ZPOPMIN', order, overflow)
    for i = 1, #popped, 2 do
      redis.call('DEL', prefix .. popped[i])
      evicted = evicted + 1
    end
  end
  redis.call('DEL', row)
  redis.call('ZADD', order, redis.call('INCR', seq), member)
end

if #ARGV > 6 and (mode == 'set' or fresh) then
  redis.call('HSET', row, unpack(ARGV, 7))
end

if mode == 'incr' then
  return {redis.call('HINCRBY', row, ARGV[5], ARGV[6]), evicted}
end
return {0, evicted}
"""


class RedisSharedTable(SharedTable):
    """Fixed-capacity table on Redis hashes plus an insertion-order sorted set."""

    def __init__(self, client: Redis, schema: TableSchema) -> None:
        self._client = client
        self._schema = schema
        self._prefix = f"shared:{schema.name}"
        self._upsert = client.register_script(UPSERT_SCRIPT)

    @property
    def schema(self) -> TableSchema:
        return self._schema

    def _row_key(self, key: str) -> str:
        return f"{self._prefix}:row:{key}"

    @property
    def _order_key(self) -> str:
        return f"{self._prefix}:order"

    @property
    def _seq_key(self) -> str:
        return f"{self._prefix}:seq"

    async def set(self, key: str, row: dict[str, Any]) -> None:
        coerced = self._schema.coerce_row(row)
        await self._run_upsert(key, "set", "", 0, coerced)

    async def get(self, key: str) -> Optional[dict[str, Any]]:
        raw = await self._client.hgetall(self._row_key(key))
        if not raw:
            return None
        return self._schema.decode_row(raw)

    async def incr(
        self,
        key: str,
        column: str,
        amount: int = 1,
        initial: Optional[dict[str, Any]] = None,
    ) -> int:
        if self._schema.column(column).type != ColumnType.INT:
            raise SharedTableError(self._schema.name, f"column '{column}' is not an int column")
        defaults = self._schema.coerce_row(initial or {})
        return await self._run_upsert(key, "incr", column, amount, defaults)

    async def delete(self, key: str) -> bool:
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.delete(self._row_key(key))
            pipe.zrem(self._order_key, key)
            deleted, _ = await pipe.execute()
        return bool(deleted)

    async def count(self) -> int:
        return int(await self._client.zcard(self._order_key))

    async def _run_upsert(
        self, key: str, mode: str, column: str, amount: int, row: dict[str, Any]
    ) -> int:
        pairs: list[Any] = []
        for name, value in row.items():
            pairs.extend((name, value))
        value, evicted = await self._upsert(
            keys=[self._order_key, self._seq_key, self._row_key(key)],
            args=[key, self._schema.size, f"{self._prefix}:row:", mode, column, amount, *pairs],
        )
        if evicted:
            log.debug(f"Shared table '{self._schema.name}' full, evicted {evicted} row(s)")
        return int(value)
