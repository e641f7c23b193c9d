"""Lifecycle listeners that keep a long-lived worker isolated between operations.

``WorkerHooks`` owns the start and end handlers; ``register_worker_hooks``
wires them onto a ``LifecycleDispatcher``.

Wiring:
    REQUEST_RECEIVED, TASK_RECEIVED       -> on_operation_start
    REQUEST_TERMINATED, TASK_TERMINATED   -> on_operation_end
    WORKER_ERROR_OCCURRED                 -> on_worker_error
"""

from typing import Optional

from devsocial.core.context import OperationContext
from devsocial.core.lifecycle import LifecycleDispatcher, LifecycleEvent, LifecyclePhase
from devsocial.core.logging import ContextualLogger, get_channel_logger
from devsocial.core.worker.reset import StateReset
from devsocial.core.worker.sampler import MetricsSampler
from devsocial.core.worker.tables import SessionActivityRecorder


class WorkerHooks:
    """Start/end handlers for one worker process.

    Args:
        sampler: Per-operation resource sampler.
        reset: State reset run around every operation.
        query_log_enabled: Turn on the per-operation query log (debug or
            monitoring mode).
        activity: Optional recorder for authenticated session activity.
    """

    def __init__(
        self,
        sampler: MetricsSampler,
        reset: StateReset,
        *,
        query_log_enabled: bool = False,
        activity: Optional[SessionActivityRecorder] = None,
        log: Optional[ContextualLogger] = None,
    ) -> None:
        self.sampler = sampler
        self.reset = reset
        self.query_log_enabled = query_log_enabled
        self.activity = activity
        self._log = log or get_channel_logger("worker")

    async def on_operation_start(self, event: LifecycleEvent) -> None:
        ctx = _require_context(event)
        self.sampler.start_tracking(ctx)
        if self.query_log_enabled:
            ctx.enable_query_log()
        await self.reset.before_operation(ctx)

    async def on_operation_end(self, event: LifecycleEvent) -> None:
        """Report on the finished operation, then reset worker state.

        The reset runs even when reporting fails.
        """
        ctx = _require_context(event)
        try:
            self.reset.inspect_query_log(ctx)
            self.sampler.finish(ctx)
            if self.activity is not None and ctx.is_authenticated:
                await self.activity.record(ctx)
        finally:
            await self.reset.after_operation(ctx)

    async def on_worker_error(self, event: LifecycleEvent) -> None:
        log = event.context.logger if event.context is not None else self._log
        error = event.error
        log.error(
            f"Unhandled error during operation: {error}",
            exc_info=(type(error), error, error.__traceback__) if error is not None else None,
        )


def register_worker_hooks(dispatcher: LifecycleDispatcher, hooks: WorkerHooks) -> None:
    """Attach *hooks* to the request and task phases of *dispatcher*."""
    dispatcher.listen(LifecyclePhase.REQUEST_RECEIVED, hooks.on_operation_start)
    dispatcher.listen(LifecyclePhase.TASK_RECEIVED, hooks.on_operation_start)
    dispatcher.listen(LifecyclePhase.REQUEST_TERMINATED, hooks.on_operation_end)
    dispatcher.listen(LifecyclePhase.TASK_TERMINATED, hooks.on_operation_end)
    dispatcher.listen(LifecyclePhase.WORKER_ERROR_OCCURRED, hooks.on_worker_error)


def _require_context(event: LifecycleEvent) -> OperationContext:
    if event.context is None:
        raise ValueError(f"'{event.event_type}' event carries no operation context")
    return event.context
