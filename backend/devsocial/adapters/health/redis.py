"""Redis health probe adapter."""

import time

from redis.asyncio import Redis

from devsocial.core.health.protocols import HealthProbe
from devsocial.schemas.health import CheckStatus, DependencyCheck


class RedisHealthProbe(HealthProbe):
    """Sends ``PING``; a falsy reply counts as down."""

    def __init__(self, client: Redis, name: str = "redis") -> None:
        self._client = client
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    async def check(self) -> DependencyCheck:
        started = time.perf_counter()
        pong = await self._client.ping()
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        if not pong:
            return DependencyCheck(
                status=CheckStatus.down, latency_ms=elapsed_ms, error="no PONG reply"
            )
        return DependencyCheck(status=CheckStatus.up, latency_ms=elapsed_ms)
