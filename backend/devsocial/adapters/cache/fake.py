"""In-memory tagged cache for tests."""

from typing import Any, Iterable, Optional

from devsocial.core.protocols.cache import TaggedCache


class FakeTaggedCache(TaggedCache):
    """Dict-backed TaggedCache that records forgotten keys and flushed tags.

    ``ttl`` is recorded but never enforced.
    """

    def __init__(self) -> None:
        self.store: dict[str, Any] = {}
        self.ttls: dict[str, Optional[int]] = {}
        self.tags: dict[str, set[str]] = {}
        self.forgotten: list[str] = []
        self.flushed_tags: list[str] = []
        self.fail_on: set[str] = set()

    async def get(self, key: str) -> Optional[Any]:
        return self.store.get(key)

    async def put(
        self,
        key: str,
        value: Any,
        *,
        ttl: Optional[int] = None,
        tags: Iterable[str] = (),
    ) -> None:
        self.store[key] = value
        self.ttls[key] = ttl
        for tag in tags:
            self.tags.setdefault(tag, set()).add(key)

    async def forget(self, key: str) -> bool:
        if key in self.fail_on:
            raise ConnectionError(f"cache unavailable for {key}")
        self.forgotten.append(key)
        self.ttls.pop(key, None)
        return self.store.pop(key, None) is not None

    async def flush_tags(self, *tags: str) -> int:
        deleted = 0
        for tag in tags:
            self.flushed_tags.append(tag)
            for key in self.tags.pop(tag, set()):
                if self.store.pop(key, None) is not None:
                    deleted += 1
        return deleted

    # -- test helpers --

    def has(self, key: str) -> bool:
        return key in self.store
