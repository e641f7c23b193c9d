"""Fake metrics service for testing."""

from devsocial.core.protocols.metrics import MetricsService, OperationMetrics


class FakeMetricsService(MetricsService):
    """In-memory MetricsService stand-in for testing.

    Records start/stop calls instead of binding a port.
    """

    def __init__(self, operation: OperationMetrics) -> None:
        self.operation = operation
        self.started = False
        self.stopped = False

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.stopped = True
