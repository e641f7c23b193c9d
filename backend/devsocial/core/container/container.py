"""Dependency Injection Container.

The container is a simple immutable dataclass that holds protocol
implementations and the worker runtime built on top of them. It has no
construction logic; that belongs in the factory.
"""

from dataclasses import dataclass, replace
from typing import Any, Optional

from devsocial.core.lifecycle import LifecycleDispatcher
from devsocial.core.protocols import (
    HealthServiceProtocol,
    JobQueue,
    MemoryProbe,
    MetricsService,
    SharedTable,
    TaggedCache,
)
from devsocial.core.worker.hooks import WorkerHooks
from devsocial.core.worker.rate_limit import RateLimiter
from devsocial.core.worker.tasks import TaskRunner


@dataclass(frozen=True)
class Container:
    """Immutable container holding all protocol implementations.

    Usage:
        # Production: use the global container built by factory
        from devsocial.core.container import container
        await container.dispatcher.dispatch(LifecycleEvent(LifecyclePhase.WORKER_STARTING))

        # Testing: construct directly with fakes (see backend/conftest.py
        # for the test_container fixture)
        test_container = Container(health=FakeHealthService(), ...)

        # FastAPI endpoints: use Inject() to pull individual protocols
        from devsocial.api.deps import Inject
        async def my_endpoint(cache: TaggedCache = Inject(TaggedCache)):
            ...
    """

    # Health service: readiness check facade
    health: HealthServiceProtocol

    # Metrics (per-operation instrumentation + sidecar, via MetricsService facade)
    metrics: MetricsService

    # Resident memory of this worker process
    memory: MemoryProbe

    # Application cache (per-user and aggregate entries)
    cache: TaggedCache

    # Background job queues
    job_queue: JobQueue

    # Cross-process shared tables
    user_sessions: SharedTable
    rate_limits: SharedTable

    # Worker lifecycle: dispatcher and the listeners registered on it
    dispatcher: LifecycleDispatcher
    hooks: WorkerHooks

    # Background task runner (used by the task worker entrypoint)
    task_runner: TaskRunner

    # Optional: None when RATE_LIMIT_ENABLED is off
    rate_limiter: Optional[RateLimiter] = None

    def replace(self, **changes: Any) -> "Container":
        """Create a new container with some dependencies replaced.

        Useful for partial overrides in tests:

            modified = container.replace(cache=FakeTaggedCache())
        """
        return replace(self, **changes)
