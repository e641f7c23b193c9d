"""Application settings.

All tunables are read from the environment (and an optional ``.env`` file)
through Pydantic Settings. Defaults mirror the production worker profile.
"""

import os
from typing import Optional
from urllib.parse import quote

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from devsocial.core.config.enums import Environment, GcStrategy, SharedTableBackend


def _default_worker_processes() -> int:
    return os.cpu_count() or 4


class Settings(BaseSettings):
    """Settings for the API workers, background task runners and tooling."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # -- Application ---------------------------------------------------------

    PROJECT_NAME: str = "devsocial"
    ENVIRONMENT: Environment = Environment.LOCAL
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOCAL_DEVELOPMENT: bool = False

    # -- Postgres ------------------------------------------------------------

    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "devsocial"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "devsocial"
    DB_POOL_SIZE: int = 20
    DB_POOL_MAX_OVERFLOW: int = 40

    # -- Redis ---------------------------------------------------------------

    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: Optional[str] = None
    REDIS_DB: int = 0

    # -- Health --------------------------------------------------------------

    HEALTH_CHECK_TIMEOUT: float = 5.0
    HEALTH_CRITICAL_PROBES: str = "postgres"

    # -- Worker server -------------------------------------------------------

    WORKER_HOST: str = "0.0.0.0"
    WORKER_PORT: int = 8000
    WORKER_PROCESSES: int = Field(default_factory=_default_worker_processes)
    WORKER_MAX_REQUESTS: int = 1000
    WORKER_MEMORY_LIMIT: str = "512M"
    WORKER_MONITORING_ENABLED: bool = False

    # -- Per-operation metric thresholds -------------------------------------

    SLOW_REQUEST_SECONDS: float = 1.0
    HIGH_MEMORY_DELTA_BYTES: int = 50 * 1024 * 1024
    MEMORY_PRESSURE_RATIO: float = 0.75
    QUERY_COUNT_WARNING: int = 20
    QUERY_LOG_WARNING: int = 50

    # -- Garbage collection --------------------------------------------------

    GC_ENABLED: bool = True
    GC_STRATEGY: GcStrategy = GcStrategy.PROBABILISTIC
    GC_INTERVAL: int = 500
    GC_PROBABILITY: float = 0.1

    # -- Shared tables / rate limiting ---------------------------------------

    SHARED_TABLE_BACKEND: SharedTableBackend = SharedTableBackend.REDIS
    SESSION_TABLE_ROWS: int = 10_000
    RATE_LIMIT_TABLE_ROWS: int = 100_000
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_REQUESTS: int = 600
    RATE_LIMIT_WINDOW_SECONDS: int = 60

    # -- Background queues ---------------------------------------------------

    QUEUE_NAMES: str = "default,notifications,media,analytics"
    QUEUE_BACKLOG_QUEUES: str = "default,notifications"
    QUEUE_SLOW_JOB_SECONDS: float = 30.0
    QUEUE_JOB_TRIES: int = 3
    QUEUE_IDLE_SECONDS: float = 3.0
    QUEUE_JOB_TIMEOUT_SECONDS: float = 300.0
    QUEUE_WORKER_MEMORY_LIMIT: str = "512M"

    # -- Metrics sidecar -----------------------------------------------------

    METRICS_HOST: str = "0.0.0.0"
    METRICS_PORT: int = 9102

    @field_validator("MEMORY_PRESSURE_RATIO", "GC_PROBABILITY")
    @classmethod
    def _check_ratio(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("must be between 0 and 1")
        return value

    @field_validator("GC_INTERVAL", "WORKER_PROCESSES")
    @classmethod
    def _check_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be a positive integer")
        return value

    # -- Derived values ------------------------------------------------------

    @property
    def SQLALCHEMY_ASYNC_DATABASE_URI(self) -> str:  # noqa: N802
        """Async SQLAlchemy URI using the asyncpg driver."""
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def REDIS_URL(self) -> str:  # noqa: N802
        """Redis connection URL."""
        auth = f":{quote(self.REDIS_PASSWORD, safe='')}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    @property
    def health_critical_probes(self) -> frozenset[str]:
        """Probe names whose failure flips readiness to ``not_ready``."""
        return _split_csv(self.HEALTH_CRITICAL_PROBES)

    @property
    def queue_names(self) -> tuple[str, ...]:
        """Queues consumed by the background task runner, in priority order."""
        return tuple(
            name.strip() for name in self.QUEUE_NAMES.split(",") if name.strip()
        )

    @property
    def backlog_queues(self) -> tuple[str, ...]:
        """Queues summed by the worker health probe."""
        return tuple(
            name.strip() for name in self.QUEUE_BACKLOG_QUEUES.split(",") if name.strip()
        )

    @property
    def query_log_enabled(self) -> bool:
        """Whether per-operation query logging is on."""
        return self.DEBUG or self.WORKER_MONITORING_ENABLED


def _split_csv(raw: str) -> frozenset[str]:
    return frozenset(name.strip() for name in raw.split(",") if name.strip())
