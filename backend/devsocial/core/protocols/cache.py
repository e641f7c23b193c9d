"""Cache protocol for dependency injection.

The worker only needs a narrow slice of a cache: read/write single keys,
forget keys, and flush every key stored under a tag without enumerating
the keys up front (tagged invalidation).
"""

from typing import Any, Iterable, Optional, Protocol, runtime_checkable


@runtime_checkable
class TaggedCache(Protocol):
    """Key-value cache with tag-based bulk invalidation."""

    async def get(self, key: str) -> Optional[Any]:
        """Return the cached value for *key*, or ``None``."""
        ...

    async def put(
        self,
        key: str,
        value: Any,
        *,
        ttl: Optional[int] = None,
        tags: Iterable[str] = (),
    ) -> None:
        """Store *value* under *key*, optionally tagging it.

        Args:
            key: Cache key.
            value: JSON-serializable value.
            ttl: Expiry in seconds, ``None`` for no expiry.
            tags: Tags the key is filed under for bulk invalidation.
        """
        ...

    async def forget(self, key: str) -> bool:
        """Delete *key*. Returns whether it existed."""
        ...

    async def flush_tags(self, *tags: str) -> int:
        """Delete every key filed under any of *tags*. Returns the number deleted."""
        ...
