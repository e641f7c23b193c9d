"""In-memory fakes for core services."""

from devsocial.core.fakes.metrics_service import FakeMetricsService

__all__ = ["FakeMetricsService"]
