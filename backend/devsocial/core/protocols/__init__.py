"""Core protocols for dependency injection.

Cross-cutting infrastructure protocols used by the worker runtime, the API
and the health tooling.
"""

from devsocial.core.health.protocols import HealthProbe, HealthServiceProtocol
from devsocial.core.protocols.cache import TaggedCache
from devsocial.core.protocols.metrics import (
    MemoryProbe,
    MetricsRenderer,
    MetricsService,
    OperationMetrics,
)
from devsocial.core.protocols.queue import JobQueue
from devsocial.core.protocols.shared_table import SharedTable
from devsocial.core.protocols.worker_state import (
    ConnectionResolver,
    OrmRegistry,
    RequestBindings,
    ViewState,
)

__all__ = [
    "ConnectionResolver",
    "HealthProbe",
    "HealthServiceProtocol",
    "JobQueue",
    "MemoryProbe",
    "MetricsRenderer",
    "MetricsService",
    "OperationMetrics",
    "OrmRegistry",
    "RequestBindings",
    "SharedTable",
    "TaggedCache",
    "ViewState",
]
