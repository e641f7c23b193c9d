"""Metrics adapters: Prometheus and Fake implementations.

Re-exports every public adapter so consumers can import directly from
``devsocial.adapters.metrics``.
"""

from devsocial.adapters.metrics.operation import (
    FakeOperationMetrics,
    OperationRecord,
    PrometheusOperationMetrics,
    QueryRecord,
)
from devsocial.adapters.metrics.renderer import FakeMetricsRenderer, PrometheusMetricsRenderer

__all__ = [
    "FakeMetricsRenderer",
    "FakeOperationMetrics",
    "OperationRecord",
    "PrometheusMetricsRenderer",
    "PrometheusOperationMetrics",
    "QueryRecord",
]
