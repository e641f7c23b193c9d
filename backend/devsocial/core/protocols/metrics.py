"""Metrics protocols for dependency injection.

Consolidates all metrics-related protocols into a single module:
- MemoryProbe: resident-memory readings for the current process
- OperationMetrics: per-operation (request/task) resource instrumentation
- MetricsRenderer: metrics serialization for scraping
- MetricsService: facade that owns all metrics adapters
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

# ---------------------------------------------------------------------------
# MemoryProbe
# ---------------------------------------------------------------------------


@runtime_checkable
class MemoryProbe(Protocol):
    """Protocol for reading the process's resident memory."""

    def current(self) -> int:
        """Current resident set size in bytes."""
        ...

    def peak(self) -> int:
        """Peak resident set size in bytes since the process started."""
        ...


# ---------------------------------------------------------------------------
# OperationMetrics
# ---------------------------------------------------------------------------


@runtime_checkable
class OperationMetrics(Protocol):
    """Protocol for per-operation resource metrics collection."""

    def observe_operation(
        self,
        *,
        kind: str,
        duration: float,
        memory_delta: int,
    ) -> None:
        """Record a finished operation.

        Args:
            kind: ``request`` or ``task``.
            duration: Wall-clock duration in seconds.
            memory_delta: Resident memory growth in bytes (may be negative).
        """
        ...

    def observe_queries(self, *, kind: str, count: int) -> None:
        """Record how many datastore queries an operation issued."""
        ...

    def set_memory_usage(self, *, current: int, limit: int) -> None:
        """Push the current resident memory and the configured ceiling."""
        ...


# ---------------------------------------------------------------------------
# MetricsRenderer
# ---------------------------------------------------------------------------


@runtime_checkable
class MetricsRenderer(Protocol):
    """Protocol for rendering collected metrics into a scrapeable format."""

    @property
    def content_type(self) -> str:
        """MIME type for the serialized metrics output."""
        ...

    def generate(self) -> bytes:
        """Serialize all collected metrics into the wire format."""
        ...


# ---------------------------------------------------------------------------
# MetricsService
# ---------------------------------------------------------------------------


@runtime_checkable
class MetricsService(Protocol):
    """Protocol for the metrics facade.

    ``operation`` is typed with its protocol so ``Inject()`` in deps.py can
    resolve it via nested attribute lookup.
    """

    operation: OperationMetrics

    async def start(self) -> None:
        """Start the metrics sidecar server."""
        ...

    async def stop(self) -> None:
        """Stop all background services."""
        ...
