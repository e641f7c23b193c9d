"""Cache adapters."""

from devsocial.adapters.cache.fake import FakeTaggedCache
from devsocial.adapters.cache.redis import RedisTaggedCache

__all__ = ["FakeTaggedCache", "RedisTaggedCache"]
