"""Background task runner.

Pops jobs from named queues and runs each one as an operation with the same
lifecycle as an HTTP request: TASK_RECEIVED before the handler, and
TASK_TERMINATED afterwards whether or not the handler raised. A long-lived
task worker therefore gets the same isolation and resource reporting as the
API workers.
"""

import asyncio
import time
from typing import Awaitable, Callable, Iterable, Mapping, Optional

from devsocial.core.context import (
    OperationContext,
    OperationKind,
    bind_operation,
    unbind_operation,
)
from devsocial.core.lifecycle import LifecycleDispatcher, LifecycleEvent, LifecyclePhase
from devsocial.core.logging import ContextualLogger, get_channel_logger
from devsocial.core.protocols.metrics import MemoryProbe
from devsocial.core.protocols.queue import JobQueue
from devsocial.core.worker.memory import UNLIMITED, format_bytes
from devsocial.schemas.job import Job

TaskHandler = Callable[[Job, OperationContext], Awaitable[None]]


class TaskRunner:
    """Consume jobs from one or more queues.

    Args:
        queue: Queue backend.
        dispatcher: Lifecycle dispatcher the worker hooks are registered on.
        handlers: Job name to handler coroutine.
        queues: Queue names polled by ``run_forever``, in priority order.
        tries: Total attempts per job before it is given up on.
        slow_job_seconds: Duration above which a finished job is logged.
        idle_seconds: How long ``run_forever`` waits when every queue is empty.
        timeout_seconds: Per-job time limit; ``None`` for none. A job that
            runs out of time counts as a failed attempt.
        memory: Source of resident-memory readings for ``memory_limit``.
        memory_limit: Resident memory in bytes at which ``run_forever``
            returns after the current job so a supervisor can restart the
            process.
    """

    def __init__(
        self,
        queue: JobQueue,
        dispatcher: LifecycleDispatcher,
        handlers: Optional[Mapping[str, TaskHandler]] = None,
        *,
        queues: Iterable[str] = ("default",),
        tries: int = 3,
        slow_job_seconds: float = 30.0,
        idle_seconds: float = 1.0,
        timeout_seconds: Optional[float] = None,
        memory: Optional[MemoryProbe] = None,
        memory_limit: int = UNLIMITED,
        clock: Callable[[], float] = time.perf_counter,
        log: Optional[ContextualLogger] = None,
    ) -> None:
        if tries < 1:
            raise ValueError("Job tries must be a positive integer")
        self._queue = queue
        self._dispatcher = dispatcher
        self._handlers: dict[str, TaskHandler] = dict(handlers or {})
        self.queues = tuple(queues)
        self.tries = tries
        self.slow_job_seconds = slow_job_seconds
        self.idle_seconds = idle_seconds
        self.timeout_seconds = timeout_seconds
        self._memory = memory
        self.memory_limit = memory_limit
        self._clock = clock
        self._log = log or get_channel_logger("queue")
        self._stopped = asyncio.Event()

    def register(self, name: str, handler: TaskHandler) -> None:
        """Register the handler for jobs called *name*."""
        self._handlers[name] = handler

    async def run_once(self, queue_name: str, timeout: int = 0) -> Optional[Job]:
        """Pop and run a single job from *queue_name*.

        Returns:
            The job that was run, or ``None`` when the queue was empty.
        """
        job = await self._queue.pop(queue_name, timeout)
        if job is None:
            return None

        ctx = OperationContext(kind=OperationKind.TASK, name=job.name)
        token = bind_operation(ctx)
        try:
            await self._dispatcher.dispatch(LifecycleEvent(LifecyclePhase.TASK_RECEIVED, ctx))
            await self._execute(queue_name, job, ctx)
        finally:
            await self._dispatcher.dispatch(LifecycleEvent(LifecyclePhase.TASK_TERMINATED, ctx))
            unbind_operation(token)
        return job

    async def run_forever(self) -> None:
        """Poll every configured queue until ``stop()`` is called."""
        self._stopped.clear()
        self._log.info(f"Task runner started on queues: {', '.join(self.queues)}")
        while not self._stopped.is_set():
            processed = False
            for name in self.queues:
                if self._stopped.is_set():
                    break
                try:
                    processed = await self.run_once(name) is not None or processed
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    self._log.error(f"Failed to process queue '{name}': {exc}", exc_info=True)
            if processed and self._memory_exceeded():
                self.stop()
            elif not processed:
                try:
                    await asyncio.wait_for(self._stopped.wait(), timeout=self.idle_seconds)
                except asyncio.TimeoutError:
                    pass
        self._log.info("Task runner stopped")

    def stop(self) -> None:
        """Ask ``run_forever`` to return after the job in progress."""
        self._stopped.set()

    async def _execute(self, queue_name: str, job: Job, ctx: OperationContext) -> None:
        handler = self._handlers.get(job.name)
        if handler is None:
            ctx.logger.error(f"No handler registered for job '{job.name}', dropping job {job.id}")
            return

        started = self._clock()
        try:
            await asyncio.wait_for(handler(job, ctx), timeout=self.timeout_seconds)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            await self._dispatcher.dispatch(
                LifecycleEvent(LifecyclePhase.WORKER_ERROR_OCCURRED, ctx, error=exc)
            )
            await self._retry_or_fail(queue_name, job, ctx, exc)
        finally:
            elapsed = self._clock() - started
            if elapsed > self.slow_job_seconds:
                ctx.logger.warning(
                    "Slow job detected",
                    extra={
                        "job": job.name,
                        "queue": queue_name,
                        "execution_time": f"{round(elapsed, 3)}s",
                    },
                )

    async def _retry_or_fail(
        self, queue_name: str, job: Job, ctx: OperationContext, exc: Exception
    ) -> None:
        attempts = job.attempts + 1
        if attempts < self.tries:
            await self._queue.push(queue_name, job.model_copy(update={"attempts": attempts}))
            ctx.logger.info(f"Re-queued job {job.id} ({attempts}/{self.tries} attempts)")
            return
        ctx.logger.error(
            f"Job {job.id} failed after {attempts} attempts: {exc}",
            extra={"job": job.name, "queue": queue_name, "payload": job.payload},
        )

    def _memory_exceeded(self) -> bool:
        if self._memory is None or self.memory_limit >= UNLIMITED:
            return False
        current = self._memory.current()
        if current < self.memory_limit:
            return False
        self._log.warning(
            f"Memory limit exceeded ({format_bytes(current)} >= "
            f"{format_bytes(self.memory_limit)}), stopping task runner"
        )
        return True
