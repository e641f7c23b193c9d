"""Job queue backlog probe adapter."""

import time
from typing import Iterable

from devsocial.core.health.protocols import HealthProbe
from devsocial.core.protocols.queue import JobQueue
from devsocial.schemas.health import CheckStatus, DependencyCheck


class QueueBacklogProbe(HealthProbe):
    """Reports ``down`` when pending jobs across *queues* exceed *max_backlog*."""

    def __init__(self, queue: JobQueue, queues: Iterable[str], max_backlog: int = 100) -> None:
        self._queue = queue
        self._queues = tuple(queues)
        self._max_backlog = max_backlog

    @property
    def name(self) -> str:
        return "queues"

    async def check(self) -> DependencyCheck:
        started = time.perf_counter()
        pending = 0
        for queue_name in self._queues:
            pending += await self._queue.size(queue_name)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        if pending > self._max_backlog:
            return DependencyCheck(
                status=CheckStatus.down,
                latency_ms=elapsed_ms,
                error=f"backlog of {pending} pending jobs",
            )
        return DependencyCheck(status=CheckStatus.up, latency_ms=elapsed_ms)
