"""Database session configuration.

Sessions are scoped to the running operation: every request or background
task gets its own ``AsyncSession`` from ``ScopedSession`` and the worker's
``ConnectionResolver`` removes it when the operation ends.
"""

import asyncio

from sqlalchemy.ext.asyncio import (
    async_scoped_session,
    async_sessionmaker,
    create_async_engine,
)

from devsocial.adapters.database.query_log import install_query_logging
from devsocial.core.config import settings
from devsocial.core.context import current_operation

# Idle transactions are killed server-side after 5 minutes.
connect_args_config = {
    "server_settings": {
        "idle_in_transaction_session_timeout": "300000",
    },
    "command_timeout": 60,
}

async_engine = create_async_engine(
    settings.SQLALCHEMY_ASYNC_DATABASE_URI,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_POOL_MAX_OVERFLOW,
    pool_pre_ping=True,
    pool_recycle=300,
    pool_timeout=30,
    isolation_level="READ COMMITTED",
    connect_args=connect_args_config,
)

install_query_logging(async_engine)

AsyncSessionLocal = async_sessionmaker(autocommit=False, autoflush=False, bind=async_engine)

# Dedicated engine for health checks, isolated from the application pool so
# that a saturated pool cannot fail the readiness probe.
health_check_engine = create_async_engine(
    settings.SQLALCHEMY_ASYNC_DATABASE_URI,
    pool_size=1,
    max_overflow=0,
    pool_pre_ping=True,
    pool_recycle=300,
    pool_timeout=10,
    connect_args=connect_args_config,
)


def operation_scope() -> str:
    """Scope key for ``ScopedSession``: the current operation, else the current task."""
    ctx = current_operation()
    if ctx is not None:
        return ctx.operation_id
    return f"task-{id(asyncio.current_task())}"


ScopedSession = async_scoped_session(AsyncSessionLocal, scopefunc=operation_scope)

