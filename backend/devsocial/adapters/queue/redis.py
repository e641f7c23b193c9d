"""Redis list-backed job queue.

Each named queue is a Redis list ``queues:<name>``; jobs are pushed to the
tail as JSON and popped from the head.
"""

from typing import Optional

from redis.asyncio import Redis

from devsocial.core.logging import logger
from devsocial.core.protocols.queue import JobQueue
from devsocial.schemas.job import Job


def queue_key(queue: str) -> str:
    return f"queues:{queue}"


class RedisJobQueue(JobQueue):
    """FIFO job queues on Redis lists."""

    def __init__(self, client: Redis) -> None:
        self._client = client

    async def push(self, queue: str, job: Job) -> None:
        await self._client.rpush(queue_key(queue), job.model_dump_json())

    async def pop(self, queue: str, timeout: int = 0) -> Optional[Job]:
        # BLPOP with timeout 0 blocks forever, so a non-blocking pop uses LPOP.
        if timeout > 0:
            item = await self._client.blpop([queue_key(queue)], timeout=timeout)
            raw = item[1] if item else None
        else:
            raw = await self._client.lpop(queue_key(queue))
        if raw is None:
            return None
        try:
            return Job.model_validate_json(raw)
        except ValueError as e:
            logger.error(f"Discarding malformed job on queue '{queue}': {e}")
            return None

    async def size(self, queue: str) -> int:
        return int(await self._client.llen(queue_key(queue)))
