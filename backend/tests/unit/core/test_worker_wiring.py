"""Unit tests for the container factory's worker wiring.

``create_container`` builds the real worker runtime; these tests check that
the lifecycle listeners land on the right phases and that settings pick the
right backends. No network I/O happens: the Redis client connects lazily and
the engines are never used.
"""

import pytest

from devsocial.adapters.shared_tables import InMemorySharedTable, RedisSharedTable
from devsocial.api.deps import Inject, _resolve_field_name, get_container
from devsocial.core import container as container_mod
from devsocial.core.config import Settings
from devsocial.core.container import create_container, initialize_container, reset_container
from devsocial.core.lifecycle import LifecyclePhase
from devsocial.core.protocols import HealthServiceProtocol, JobQueue, TaggedCache


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


@pytest.fixture(autouse=True)
def _clean_global_container():
    reset_container()
    yield
    reset_container()


class TestLifecycleWiring:
    def test_hooks_on_request_and_task_phases(self):
        c = create_container(_settings())
        d = c.dispatcher

        assert d.listeners(LifecyclePhase.REQUEST_RECEIVED) == (c.hooks.on_operation_start,)
        assert d.listeners(LifecyclePhase.TASK_RECEIVED) == (c.hooks.on_operation_start,)
        assert d.listeners(LifecyclePhase.REQUEST_TERMINATED) == (c.hooks.on_operation_end,)
        assert d.listeners(LifecyclePhase.TASK_TERMINATED) == (c.hooks.on_operation_end,)
        assert d.listeners(LifecyclePhase.WORKER_ERROR_OCCURRED) == (c.hooks.on_worker_error,)

    def test_no_core_listeners_on_handled_or_starting(self):
        c = create_container(_settings())

        assert c.dispatcher.listeners(LifecyclePhase.REQUEST_HANDLED) == ()
        assert c.dispatcher.listeners(LifecyclePhase.WORKER_STARTING) == ()

    @pytest.mark.asyncio
    async def test_worker_stopping_drains_readiness(self):
        from devsocial.core.lifecycle import LifecycleEvent

        c = create_container(_settings())

        await c.dispatcher.dispatch(LifecycleEvent(LifecyclePhase.WORKER_STOPPING))

        assert c.health.shutting_down is True

    def test_query_log_follows_debug(self):
        assert create_container(_settings(DEBUG=True)).hooks.query_log_enabled is True
        assert create_container(_settings(DEBUG=False)).hooks.query_log_enabled is False


class TestBackends:
    def test_memory_shared_tables(self):
        c = create_container(_settings(SHARED_TABLE_BACKEND="memory"))

        assert isinstance(c.user_sessions, InMemorySharedTable)
        assert isinstance(c.rate_limits, InMemorySharedTable)

    def test_redis_shared_tables(self):
        c = create_container(_settings(SHARED_TABLE_BACKEND="redis"))

        assert isinstance(c.user_sessions, RedisSharedTable)

    def test_rate_limiter_follows_settings(self):
        limited = create_container(_settings(RATE_LIMIT_REQUESTS=30))
        assert limited.rate_limiter.limit == 30

        assert create_container(_settings(RATE_LIMIT_ENABLED=False)).rate_limiter is None

    def test_task_runner_uses_configured_queues(self):
        c = create_container(_settings(QUEUE_NAMES="notifications, default", QUEUE_JOB_TRIES=2))

        assert c.task_runner.queues == ("notifications", "default")
        assert c.task_runner.tries == 2


class TestGlobalContainer:
    def test_initialize_once(self):
        settings = _settings()
        initialize_container(settings)

        assert get_container() is container_mod.container
        with pytest.raises(RuntimeError):
            initialize_container(settings)

    def test_get_container_before_initialize(self):
        with pytest.raises(RuntimeError):
            get_container()


class TestInject:
    def test_resolves_fields_by_protocol(self):
        assert _resolve_field_name(HealthServiceProtocol) == "health"
        assert _resolve_field_name(TaggedCache) == "cache"
        assert _resolve_field_name(JobQueue) == "job_queue"

    def test_unknown_protocol(self):
        with pytest.raises(TypeError):
            Inject(int)
