"""Shared Redis client.

One connection pool per worker process, created lazily on first use so that
importing this module never opens a connection (uvicorn forks workers after
import).

Usage:
    from devsocial.core.redis_client import redis_client

    await redis_client.client.ping()
"""

from typing import Optional

import redis.asyncio as redis

from devsocial.core.config import settings
from devsocial.core.logging import logger


class RedisClient:
    """Lazily-connected wrapper around ``redis.asyncio.Redis``."""

    def __init__(self, url: str, *, socket_timeout: float = 5.0) -> None:
        self._url = url
        self._socket_timeout = socket_timeout
        self._client: Optional[redis.Redis] = None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.Redis.from_url(
                self._url,
                decode_responses=True,
                socket_timeout=self._socket_timeout,
                socket_connect_timeout=self._socket_timeout,
                health_check_interval=30,
            )
        return self._client

    async def close(self) -> None:
        """Close the pool; the next ``client`` access reconnects."""
        if self._client is not None:
            try:
                await self._client.aclose()
            except Exception as e:
                logger.warning(f"Error closing Redis client: {e}")
            finally:
                self._client = None


redis_client = RedisClient(settings.REDIS_URL)
