"""Per-operation resource sampling.

``MetricsSampler`` measures one unit of work (an HTTP request or a background
task): wall-clock time, resident-memory growth and datastore query volume.
Samples live on the operation's ``OperationContext`` and are discarded with
it; only warnings (for expensive operations) and metric observations leave
the worker.

Every check is independent and non-fatal: a failure is logged and request
processing carries on.
"""

import time
from typing import Callable, Optional

from devsocial.core.config import Settings
from devsocial.core.context import OperationContext, RequestMetrics
from devsocial.core.logging import ContextualLogger, get_channel_logger
from devsocial.core.protocols.metrics import MemoryProbe, OperationMetrics
from devsocial.core.worker.memory import UNLIMITED, format_bytes, parse_memory_limit


class MetricsSampler:
    """Measure resource consumption of a single operation.

    Args:
        memory: Source of resident-memory readings.
        metrics: Sink for per-operation observations.
        memory_limit: Worker memory ceiling in bytes (``UNLIMITED`` for none).
        slow_seconds: Elapsed time above which an operation is logged.
        high_memory_delta: Memory growth in bytes above which an operation is logged.
        pressure_ratio: Fraction of ``memory_limit`` above which memory
            pressure is logged.
        query_warning: Query count above which an operation is logged.
        clock: Monotonic clock returning seconds.
    """

    def __init__(
        self,
        memory: MemoryProbe,
        metrics: OperationMetrics,
        *,
        memory_limit: int = UNLIMITED,
        slow_seconds: float = 1.0,
        high_memory_delta: int = 50 * 1024 * 1024,
        pressure_ratio: float = 0.75,
        query_warning: int = 20,
        clock: Callable[[], float] = time.perf_counter,
        log: Optional[ContextualLogger] = None,
    ) -> None:
        self._memory = memory
        self._metrics = metrics
        self._memory_limit = memory_limit
        self._slow_seconds = slow_seconds
        self._high_memory_delta = high_memory_delta
        self._pressure_ratio = pressure_ratio
        self._query_warning = query_warning
        self._clock = clock
        self._log = log or get_channel_logger("worker")

    @classmethod
    def from_settings(
        cls, settings: Settings, memory: MemoryProbe, metrics: OperationMetrics
    ) -> "MetricsSampler":
        """Build a sampler with thresholds taken from *settings*."""
        return cls(
            memory,
            metrics,
            memory_limit=parse_memory_limit(settings.WORKER_MEMORY_LIMIT),
            slow_seconds=settings.SLOW_REQUEST_SECONDS,
            high_memory_delta=settings.HIGH_MEMORY_DELTA_BYTES,
            pressure_ratio=settings.MEMORY_PRESSURE_RATIO,
            query_warning=settings.QUERY_COUNT_WARNING,
        )

    @property
    def memory_limit(self) -> int:
        return self._memory_limit

    def start_tracking(self, ctx: OperationContext) -> RequestMetrics:
        """Take the start-of-operation sample, replacing any earlier one."""
        ctx.metrics = RequestMetrics(
            start_time=self._clock(),
            start_memory=self._memory.current(),
        )
        return ctx.metrics

    def record_at_end(self, ctx: OperationContext) -> Optional[tuple[float, int]]:
        """Compare against the start sample and log expensive operations.

        Returns:
            ``(elapsed_seconds, memory_delta_bytes)``, or ``None`` when
            tracking never started for *ctx*.
        """
        sample = ctx.metrics
        if sample is None:
            return None

        elapsed = self._clock() - sample.start_time
        memory_used = self._memory.current() - sample.start_memory
        self._metrics.observe_operation(
            kind=ctx.kind.value, duration=elapsed, memory_delta=memory_used
        )

        if elapsed > self._slow_seconds or memory_used > self._high_memory_delta:
            self._log.warning(
                "Slow request detected",
                extra={
                    "execution_time": f"{round(elapsed, 3)}s",
                    "memory_used": format_bytes(memory_used),
                    "peak_memory": format_bytes(self._memory.peak()),
                    "url": ctx.name,
                    "method": ctx.method,
                },
            )
        return elapsed, memory_used

    def check_memory_pressure(self) -> bool:
        """Warn when resident memory passes the pressure ratio of the ceiling.

        Returns:
            Whether the worker is under memory pressure.
        """
        current = self._memory.current()
        limit = self._memory_limit
        self._metrics.set_memory_usage(current=current, limit=limit)

        if limit >= UNLIMITED or current <= limit * self._pressure_ratio:
            return False

        self._log.warning(
            "High memory usage detected",
            extra={
                "current_memory": format_bytes(current),
                "memory_limit": format_bytes(limit),
                "usage_percentage": f"{round(current / limit * 100, 2)}%",
            },
        )
        return True

    def report_query_volume(self, ctx: OperationContext) -> int:
        """Warn on a high query count, then reset the counter.

        The counter is reset whether or not the warning fired, so a long-lived
        worker never accumulates counts across operations.

        Returns:
            The query count observed before the reset.
        """
        count = ctx.metrics.query_count if ctx.metrics is not None else len(ctx.queries)
        try:
            self._metrics.observe_queries(kind=ctx.kind.value, count=count)
            if count > self._query_warning:
                self._log.warning(
                    "High query count detected",
                    extra={"query_count": count, "url": ctx.name, "method": ctx.method},
                )
        finally:
            ctx.flush_query_log()
        return count

    def finish(self, ctx: OperationContext) -> None:
        """Run every end-of-operation check; one failing check never skips the others."""
        for step in (
            lambda: self.record_at_end(ctx),
            self.check_memory_pressure,
            lambda: self.report_query_volume(ctx),
        ):
            try:
                step()
            except Exception as exc:
                ctx.logger.warning(f"Operation metrics step failed: {exc}", exc_info=True)
