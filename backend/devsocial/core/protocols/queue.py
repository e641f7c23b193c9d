"""Job queue protocol for background tasks."""

from typing import Optional, Protocol, runtime_checkable

from devsocial.schemas.job import Job


@runtime_checkable
class JobQueue(Protocol):
    """Named FIFO queues with length introspection."""

    async def push(self, queue: str, job: Job) -> None:
        """Append *job* to the tail of *queue*."""
        ...

    async def pop(self, queue: str, timeout: int = 0) -> Optional[Job]:
        """Remove and return the head of *queue*.

        Args:
            queue: Queue name.
            timeout: Seconds to block waiting for a job; ``0`` returns
                immediately.

        Returns:
            The job, or ``None`` when the queue stayed empty.
        """
        ...

    async def size(self, queue: str) -> int:
        """Number of pending jobs in *queue*."""
        ...
