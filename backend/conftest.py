"""Root conftest for pytest configuration and shared fixtures.

This conftest is loaded before both testpaths (tests/ and the colocated
devsocial/**/tests), making its fixtures available everywhere.
"""

import os

import pytest

# Register pytest-asyncio plugin at the root level
pytest_plugins = ("pytest_asyncio",)

# ---------------------------------------------------------------------------
# Environment variables: must be set before any devsocial module import
# Uses setdefault so real env vars (CI) are never overridden.
# ---------------------------------------------------------------------------
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("POSTGRES_HOST", "localhost")
os.environ.setdefault("POSTGRES_USER", "test_user")
os.environ.setdefault("POSTGRES_PASSWORD", "test_password")
os.environ.setdefault("POSTGRES_DB", "test_db")
os.environ.setdefault("SHARED_TABLE_BACKEND", "memory")
os.environ.setdefault("GC_STRATEGY", "disabled")


# ---------------------------------------------------------------------------
# Shared fake fixtures: individual protocol fakes
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_health_service():
    """Fake HealthService returning a canned readiness response."""
    from devsocial.core.health.fakes import FakeHealthService

    return FakeHealthService()


@pytest.fixture
def fake_operation_metrics():
    """Fake OperationMetrics that records every observation."""
    from devsocial.adapters.metrics import FakeOperationMetrics

    return FakeOperationMetrics()


@pytest.fixture
def fake_metrics_service(fake_operation_metrics):
    """Fake MetricsService that records start/stop."""
    from devsocial.core.fakes import FakeMetricsService

    return FakeMetricsService(operation=fake_operation_metrics)


@pytest.fixture
def fake_memory():
    """Fake MemoryProbe reporting 64MB resident memory."""
    from devsocial.core.worker.memory import FakeMemoryProbe

    return FakeMemoryProbe()


@pytest.fixture
def fake_cache():
    """Fake TaggedCache backed by a dict."""
    from devsocial.adapters.cache import FakeTaggedCache

    return FakeTaggedCache()


@pytest.fixture
def fake_job_queue():
    """Fake JobQueue backed by in-memory deques."""
    from devsocial.adapters.queue import FakeJobQueue

    return FakeJobQueue()


@pytest.fixture
def shared_tables():
    """Process-local shared tables, small enough to exercise eviction."""
    from devsocial.adapters.shared_tables import InMemorySharedTable
    from devsocial.core.worker.tables import (
        RATE_LIMITS,
        USER_SESSIONS,
        rate_limits_schema,
        user_sessions_schema,
    )

    return {
        USER_SESSIONS: InMemorySharedTable(user_sessions_schema(size=100)),
        RATE_LIMITS: InMemorySharedTable(rate_limits_schema(size=100)),
    }


# ---------------------------------------------------------------------------
# Test container: fully faked Container for injection
# ---------------------------------------------------------------------------


@pytest.fixture
def test_container(
    fake_health_service,
    fake_metrics_service,
    fake_memory,
    fake_cache,
    fake_job_queue,
    shared_tables,
):
    """A Container with every adapter replaced by a fake.

    The worker runtime itself (dispatcher, hooks, sampler, reset, task
    runner) is real so tests exercise the actual lifecycle wiring.

    For partial overrides, use container.replace():
        limited = test_container.replace(rate_limiter=RateLimiter(...))
    """
    from devsocial.adapters.database.fake import FakeConnectionResolver, FakeOrmRegistry
    from devsocial.core.container import Container
    from devsocial.core.lifecycle import LifecycleDispatcher
    from devsocial.core.worker import (
        DisabledGcPolicy,
        MetricsSampler,
        SessionActivityRecorder,
        SharedViewState,
        StateReset,
        TaskRunner,
        WorkerBindings,
        WorkerHooks,
        register_worker_hooks,
    )
    from devsocial.core.worker.tables import RATE_LIMITS, USER_SESSIONS

    dispatcher = LifecycleDispatcher()
    hooks = WorkerHooks(
        MetricsSampler(fake_memory, fake_metrics_service.operation),
        StateReset(
            fake_cache,
            SharedViewState(),
            WorkerBindings(),
            FakeOrmRegistry(),
            FakeConnectionResolver(),
            DisabledGcPolicy(),
        ),
        activity=SessionActivityRecorder(shared_tables[USER_SESSIONS]),
    )
    register_worker_hooks(dispatcher, hooks)

    return Container(
        health=fake_health_service,
        metrics=fake_metrics_service,
        memory=fake_memory,
        cache=fake_cache,
        job_queue=fake_job_queue,
        user_sessions=shared_tables[USER_SESSIONS],
        rate_limits=shared_tables[RATE_LIMITS],
        dispatcher=dispatcher,
        hooks=hooks,
        task_runner=TaskRunner(fake_job_queue, dispatcher),
    )
