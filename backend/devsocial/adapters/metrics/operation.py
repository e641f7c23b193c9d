"""Per-operation metrics adapters (Prometheus + Fake).

Prometheus implementation creates a dedicated CollectorRegistry so worker
metrics are isolated from the default global registry.
"""

import sys
from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Gauge, Histogram

from devsocial.core.protocols.metrics import OperationMetrics

_MEMORY_DELTA_BUCKETS = (
    0,
    1024 * 1024,
    5 * 1024 * 1024,
    10 * 1024 * 1024,
    25 * 1024 * 1024,
    50 * 1024 * 1024,
    100 * 1024 * 1024,
    250 * 1024 * 1024,
)

_QUERY_COUNT_BUCKETS = (0, 1, 5, 10, 20, 50, 100, 250)


class PrometheusOperationMetrics(OperationMetrics):
    """Prometheus-backed per-operation metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

        self._duration = Histogram(
            "devsocial_operation_duration_seconds",
            "Wall-clock duration of a request or background task",
            ["kind"],
            registry=self._registry,
        )

        self._memory_delta = Histogram(
            "devsocial_operation_memory_delta_bytes",
            "Resident memory growth over a request or background task",
            ["kind"],
            buckets=_MEMORY_DELTA_BUCKETS,
            registry=self._registry,
        )

        self._queries = Histogram(
            "devsocial_operation_queries",
            "Datastore queries issued by a request or background task",
            ["kind"],
            buckets=_QUERY_COUNT_BUCKETS,
            registry=self._registry,
        )

        self._memory_usage = Gauge(
            "devsocial_worker_memory_bytes",
            "Resident memory of the worker process",
            registry=self._registry,
        )

        self._memory_limit = Gauge(
            "devsocial_worker_memory_limit_bytes",
            "Configured memory ceiling of the worker process (0 when unlimited)",
            registry=self._registry,
        )

    # -- OperationMetrics protocol methods --

    def observe_operation(self, *, kind: str, duration: float, memory_delta: int) -> None:
        self._duration.labels(kind=kind).observe(duration)
        # Shrinkage counts as zero growth.
        self._memory_delta.labels(kind=kind).observe(max(memory_delta, 0))

    def observe_queries(self, *, kind: str, count: int) -> None:
        self._queries.labels(kind=kind).observe(count)

    def set_memory_usage(self, *, current: int, limit: int) -> None:
        self._memory_usage.set(current)
        self._memory_limit.set(0 if limit >= sys.maxsize else limit)


# ---------------------------------------------------------------------------
# Fake
# ---------------------------------------------------------------------------


@dataclass
class OperationRecord:
    """Single observed operation."""

    kind: str
    duration: float
    memory_delta: int


@dataclass
class QueryRecord:
    """Single observed query count."""

    kind: str
    count: int


class FakeOperationMetrics(OperationMetrics):
    """In-memory spy implementing the OperationMetrics protocol."""

    def __init__(self) -> None:
        self.operations: list[OperationRecord] = []
        self.queries: list[QueryRecord] = []
        self.memory_usage: tuple[int, int] | None = None

    def observe_operation(self, *, kind: str, duration: float, memory_delta: int) -> None:
        self.operations.append(OperationRecord(kind, duration, memory_delta))

    def observe_queries(self, *, kind: str, count: int) -> None:
        self.queries.append(QueryRecord(kind, count))

    def set_memory_usage(self, *, current: int, limit: int) -> None:
        self.memory_usage = (current, limit)

    # -- test helpers --

    def clear(self) -> None:
        self.operations.clear()
        self.queries.clear()
        self.memory_usage = None
