"""Unit tests for the tagged cache adapters."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from devsocial.adapters.cache import FakeTaggedCache, RedisTaggedCache


def _redis_with_pipeline():
    client = MagicMock()
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[])
    cm = MagicMock()
    cm.__aenter__ = AsyncMock(return_value=pipe)
    cm.__aexit__ = AsyncMock(return_value=False)
    client.pipeline.return_value = cm
    return client, pipe


# ---------------------------------------------------------------------------
# RedisTaggedCache
# ---------------------------------------------------------------------------


class TestRedisTaggedCache:
    """Tests for the Redis adapter against a mocked client."""

    @pytest.mark.asyncio
    async def test_put_writes_value_and_tag_membership(self):
        client, pipe = _redis_with_pipeline()
        cache = RedisTaggedCache(client)

        await cache.put("user.7.feed", {"items": [1, 2]}, ttl=60, tags=["user-data"])

        pipe.set.assert_called_once_with("cache:user.7.feed", json.dumps({"items": [1, 2]}), ex=60)
        pipe.sadd.assert_called_once_with("tag:user-data:keys", "cache:user.7.feed")
        pipe.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_decodes_json(self):
        client = MagicMock()
        client.get = AsyncMock(return_value='{"count": 3}')

        assert await RedisTaggedCache(client).get("online_count") == {"count": 3}
        client.get.assert_awaited_once_with("cache:online_count")

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self):
        client = MagicMock()
        client.get = AsyncMock(return_value=None)

        assert await RedisTaggedCache(client).get("nope") is None

    @pytest.mark.asyncio
    async def test_forget_reports_existence(self):
        client = MagicMock()
        client.delete = AsyncMock(side_effect=[1, 0])
        cache = RedisTaggedCache(client)

        assert await cache.forget("active_users") is True
        assert await cache.forget("active_users") is False

    @pytest.mark.asyncio
    async def test_flush_tags_deletes_members_and_tag_set(self):
        client = MagicMock()
        client.smembers = AsyncMock(return_value={"cache:a", "cache:b"})
        client.delete = AsyncMock(side_effect=[2, 1])

        deleted = await RedisTaggedCache(client).flush_tags("user-data")

        assert deleted == 2
        assert client.delete.await_args_list[-1].args == ("tag:user-data:keys",)

    @pytest.mark.asyncio
    async def test_flush_empty_tag_only_drops_tag_set(self):
        client = MagicMock()
        client.smembers = AsyncMock(return_value=set())
        client.delete = AsyncMock(return_value=0)

        assert await RedisTaggedCache(client).flush_tags("user-data") == 0
        client.delete.assert_awaited_once_with("tag:user-data:keys")


# ---------------------------------------------------------------------------
# FakeTaggedCache
# ---------------------------------------------------------------------------


class TestFakeTaggedCache:
    """Tests for the in-memory fake."""

    @pytest.mark.asyncio
    async def test_flush_tags_only_removes_tagged_keys(self):
        cache = FakeTaggedCache()
        await cache.put("tagged", 1, tags=["user-data"])
        await cache.put("untagged", 2)

        assert await cache.flush_tags("user-data") == 1
        assert not cache.has("tagged")
        assert cache.has("untagged")

    @pytest.mark.asyncio
    async def test_fail_on_raises(self):
        cache = FakeTaggedCache()
        cache.fail_on.add("boom")

        with pytest.raises(ConnectionError):
            await cache.forget("boom")
