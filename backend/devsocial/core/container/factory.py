"""Container Factory.

All construction logic lives here. The factory reads settings and builds
the container with environment-appropriate implementations, then wires the
worker hooks onto the lifecycle dispatcher.
"""

from prometheus_client import CollectorRegistry
from redis.asyncio import Redis

from devsocial.adapters.cache import RedisTaggedCache
from devsocial.adapters.database import SqlAlchemyConnectionResolver, SqlAlchemyOrmRegistry
from devsocial.adapters.health import PostgresHealthProbe, QueueBacklogProbe, RedisHealthProbe
from devsocial.adapters.metrics import PrometheusMetricsRenderer, PrometheusOperationMetrics
from devsocial.adapters.queue import RedisJobQueue
from devsocial.adapters.shared_tables import InMemorySharedTable, RedisSharedTable
from devsocial.core.config import Settings, SharedTableBackend
from devsocial.core.container.container import Container
from devsocial.core.health.service import HealthService
from devsocial.core.lifecycle import LifecycleDispatcher, LifecyclePhase
from devsocial.core.logging import logger
from devsocial.core.metrics_service import PrometheusMetricsService
from devsocial.core.protocols import JobQueue, MemoryProbe, SharedTable, TaggedCache
from devsocial.core.redis_client import redis_client
from devsocial.core.worker.gc_policy import create_gc_policy
from devsocial.core.worker.hooks import WorkerHooks, register_worker_hooks
from devsocial.core.worker.memory import ProcessMemoryProbe, parse_memory_limit
from devsocial.core.worker.rate_limit import RateLimiter
from devsocial.core.worker.reset import StateReset
from devsocial.core.worker.sampler import MetricsSampler
from devsocial.core.worker.state import SharedViewState, WorkerBindings
from devsocial.core.worker.tables import (
    RATE_LIMITS,
    USER_SESSIONS,
    SessionActivityRecorder,
    default_table_schemas,
)
from devsocial.core.worker.tasks import TaskRunner
from devsocial.db.session import ScopedSession, health_check_engine


def create_container(settings: Settings) -> Container:
    """Build container with environment-appropriate implementations.

    This is the single source of truth for dependency wiring.

    Example:
        from devsocial.core.config import settings
        from devsocial.core.container import create_container

        container = create_container(settings)
    """
    client = redis_client.client

    # -----------------------------------------------------------------
    # Infrastructure adapters
    # -----------------------------------------------------------------
    cache = RedisTaggedCache(client)
    job_queue = RedisJobQueue(client)
    tables = _create_shared_tables(settings, client)
    memory = ProcessMemoryProbe()

    # -----------------------------------------------------------------
    # Health service
    # Owns shutdown flag and orchestrates readiness probes.
    # -----------------------------------------------------------------
    health = _create_health_service(settings, client, job_queue)

    # -----------------------------------------------------------------
    # Metrics (Prometheus adapters, shared registry, wrapped in service)
    # -----------------------------------------------------------------
    metrics = _create_metrics_service(settings, memory)

    # -----------------------------------------------------------------
    # Worker lifecycle
    # Sampler + reset are registered on the dispatcher in the order the
    # hosting runtime expects; the health service drains on shutdown.
    # -----------------------------------------------------------------
    dispatcher = LifecycleDispatcher()
    hooks = _create_worker_hooks(settings, memory, metrics, cache, tables[USER_SESSIONS])
    register_worker_hooks(dispatcher, hooks)
    dispatcher.listen(LifecyclePhase.WORKER_STOPPING, health.on_worker_stopping)

    # -----------------------------------------------------------------
    # Background tasks + rate limiting
    # -----------------------------------------------------------------
    task_runner = TaskRunner(
        job_queue,
        dispatcher,
        queues=settings.queue_names,
        tries=settings.QUEUE_JOB_TRIES,
        slow_job_seconds=settings.QUEUE_SLOW_JOB_SECONDS,
        idle_seconds=settings.QUEUE_IDLE_SECONDS,
        timeout_seconds=settings.QUEUE_JOB_TIMEOUT_SECONDS,
        memory=memory,
        memory_limit=parse_memory_limit(settings.QUEUE_WORKER_MEMORY_LIMIT),
    )
    rate_limiter = None
    if settings.RATE_LIMIT_ENABLED:
        rate_limiter = RateLimiter(
            tables[RATE_LIMITS],
            limit=settings.RATE_LIMIT_REQUESTS,
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
        )

    return Container(
        health=health,
        metrics=metrics,
        memory=memory,
        cache=cache,
        job_queue=job_queue,
        user_sessions=tables[USER_SESSIONS],
        rate_limits=tables[RATE_LIMITS],
        dispatcher=dispatcher,
        hooks=hooks,
        task_runner=task_runner,
        rate_limiter=rate_limiter,
    )


# ---------------------------------------------------------------------------
# Private factory functions for each dependency
# ---------------------------------------------------------------------------


def _create_health_service(
    settings: Settings, client: Redis, job_queue: JobQueue
) -> HealthService:
    """Create the health service with infrastructure probes.

    All known probes (postgres, redis, queues) are always registered. The
    critical-vs-informational split comes from ``settings.health_critical_probes``.
    """
    critical_names = settings.health_critical_probes

    probes = {
        "postgres": PostgresHealthProbe(health_check_engine),
        "redis": RedisHealthProbe(client),
        "queues": QueueBacklogProbe(job_queue, settings.backlog_queues),
    }

    unknown = critical_names - probes.keys()
    if unknown:
        logger.warning(
            f"HEALTH_CRITICAL_PROBES references unknown probes: {', '.join(sorted(unknown))}"
        )

    critical = [p for name, p in probes.items() if name in critical_names]
    informational = [p for name, p in probes.items() if name not in critical_names]

    return HealthService(
        critical=critical,
        informational=informational,
        timeout=settings.HEALTH_CHECK_TIMEOUT,
    )


def _create_metrics_service(
    settings: Settings, memory: MemoryProbe
) -> PrometheusMetricsService:
    """Build the PrometheusMetricsService with a dedicated registry."""
    registry = CollectorRegistry()
    return PrometheusMetricsService(
        operation=PrometheusOperationMetrics(registry=registry),
        renderer=PrometheusMetricsRenderer(registry),
        host=settings.METRICS_HOST,
        port=settings.METRICS_PORT,
        # One port per API worker plus one for the task worker.
        port_span=settings.WORKER_PROCESSES + 1,
        memory=memory,
        memory_limit=parse_memory_limit(settings.WORKER_MEMORY_LIMIT),
    )


def _create_shared_tables(settings: Settings, client: Redis) -> dict[str, SharedTable]:
    """Create every shared table on the configured backend."""
    schemas = default_table_schemas(settings)
    if settings.SHARED_TABLE_BACKEND == SharedTableBackend.MEMORY:
        logger.info("Shared tables are process-local (SHARED_TABLE_BACKEND=memory)")
        return {name: InMemorySharedTable(schema) for name, schema in schemas.items()}
    return {name: RedisSharedTable(client, schema) for name, schema in schemas.items()}


def _create_worker_hooks(
    settings: Settings,
    memory: MemoryProbe,
    metrics: PrometheusMetricsService,
    cache: TaggedCache,
    user_sessions: SharedTable,
) -> WorkerHooks:
    """Build the sampler and state reset around the operation-scoped session."""
    sampler = MetricsSampler.from_settings(settings, memory, metrics.operation)
    gc_policy = create_gc_policy(settings)
    reset = StateReset(
        cache,
        SharedViewState(),
        WorkerBindings(),
        SqlAlchemyOrmRegistry(ScopedSession),
        SqlAlchemyConnectionResolver(ScopedSession),
        gc_policy,
        query_log_warning=settings.QUERY_LOG_WARNING,
    )
    logger.info(
        f"Worker hooks ready (memory limit {settings.WORKER_MEMORY_LIMIT}, "
        f"gc {gc_policy!r})"
    )
    return WorkerHooks(
        sampler,
        reset,
        query_log_enabled=settings.query_log_enabled,
        activity=SessionActivityRecorder(user_sessions),
    )
