"""Redis-backed tagged cache.

Values are JSON-encoded under ``cache:<key>``. Every tag keeps a Redis set
``tag:<name>:keys`` of the cache keys filed under it, so a whole tag can be
flushed without scanning the keyspace.
"""

import json
from typing import Any, Iterable, Optional

from redis.asyncio import Redis

from devsocial.core.protocols.cache import TaggedCache

KEY_PREFIX = "cache:"


def tag_set_key(tag: str) -> str:
    return f"tag:{tag}:keys"


class RedisTaggedCache(TaggedCache):
    """Tagged cache on a shared Redis connection pool."""

    def __init__(self, client: Redis, prefix: str = KEY_PREFIX) -> None:
        self._client = client
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> Optional[Any]:
        raw = await self._client.get(self._key(key))
        return None if raw is None else json.loads(raw)

    async def put(
        self,
        key: str,
        value: Any,
        *,
        ttl: Optional[int] = None,
        tags: Iterable[str] = (),
    ) -> None:
        full_key = self._key(key)
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.set(full_key, json.dumps(value, default=str), ex=ttl)
            for tag in tags:
                pipe.sadd(tag_set_key(tag), full_key)
            await pipe.execute()

    async def forget(self, key: str) -> bool:
        return bool(await self._client.delete(self._key(key)))

    async def flush_tags(self, *tags: str) -> int:
        deleted = 0
        for tag in tags:
            members = await self._client.smembers(tag_set_key(tag))
            if members:
                deleted += await self._client.delete(*members)
            await self._client.delete(tag_set_key(tag))
        return deleted
