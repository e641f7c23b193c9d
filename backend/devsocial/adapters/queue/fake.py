"""In-memory job queue for tests."""

from collections import defaultdict, deque
from typing import Optional

from devsocial.core.protocols.queue import JobQueue
from devsocial.schemas.job import Job


class FakeJobQueue(JobQueue):
    """Deque-per-queue JobQueue; ``pop`` never blocks."""

    def __init__(self) -> None:
        self.queues: dict[str, deque[Job]] = defaultdict(deque)
        self.pushed: list[tuple[str, Job]] = []
        self.size_error: Optional[Exception] = None

    async def push(self, queue: str, job: Job) -> None:
        self.pushed.append((queue, job))
        self.queues[queue].append(job)

    async def pop(self, queue: str, timeout: int = 0) -> Optional[Job]:
        pending = self.queues.get(queue)
        return pending.popleft() if pending else None

    async def size(self, queue: str) -> int:
        if self.size_error is not None:
            raise self.size_error
        return len(self.queues.get(queue, ()))
