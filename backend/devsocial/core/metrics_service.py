"""Prometheus-backed MetricsService implementation.

Composes the operation metrics adapter and the sidecar HTTP server behind a
single lifecycle API so main.py only deals with one object.
"""

from typing import Optional

from devsocial.api.metrics import MetricsServer
from devsocial.core.protocols.metrics import (
    MemoryProbe,
    MetricsRenderer,
    MetricsService,
    OperationMetrics,
)
from devsocial.core.worker.memory import UNLIMITED


class PrometheusMetricsService(MetricsService):
    """Prometheus-backed facade that owns the metrics adapters and the sidecar.

    ``operation`` is typed with its protocol so ``Inject()`` in deps.py can
    resolve it via nested attribute lookup. ``_renderer`` stays private: it
    is an implementation detail of the sidecar server.

    With a *memory* probe, every scrape first records the process's resident
    memory against *memory_limit*.
    """

    operation: OperationMetrics

    def __init__(
        self,
        operation: OperationMetrics,
        renderer: MetricsRenderer,
        host: str,
        port: int,
        *,
        port_span: int = 1,
        memory: Optional[MemoryProbe] = None,
        memory_limit: int = UNLIMITED,
    ) -> None:
        self.operation = operation
        self._renderer = renderer
        self._host = host
        self._port = port
        self._port_span = port_span
        self._memory = memory
        self._memory_limit = memory_limit
        self._server: MetricsServer | None = None

    @property
    def port(self) -> Optional[int]:
        """Port the sidecar bound, or ``None`` while not serving."""
        return self._server.port if self._server else None

    async def start(self) -> None:
        """Start the sidecar metrics server."""
        self._server = MetricsServer(
            self._renderer,
            self._port,
            self._host,
            port_span=self._port_span,
            refresh=self.refresh_process_gauges if self._memory else None,
        )
        await self._server.start()

    async def stop(self) -> None:
        if self._server:
            await self._server.stop()
            self._server = None

    def refresh_process_gauges(self) -> None:
        if self._memory is None:
            return
        self.operation.set_memory_usage(current=self._memory.current(), limit=self._memory_limit)
