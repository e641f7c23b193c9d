"""Shared table adapters."""

from devsocial.adapters.shared_tables.in_memory import InMemorySharedTable
from devsocial.adapters.shared_tables.redis import RedisSharedTable

__all__ = ["InMemorySharedTable", "RedisSharedTable"]
