"""Unit tests for SQLAlchemy query logging and session cleanup adapters."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import create_engine, text

from devsocial.adapters.database import (
    SqlAlchemyConnectionResolver,
    SqlAlchemyOrmRegistry,
    install_query_logging,
)
from devsocial.core.context import (
    OperationContext,
    OperationKind,
    RequestMetrics,
    bind_operation,
    unbind_operation,
)


# ---------------------------------------------------------------------------
# Query logging
# ---------------------------------------------------------------------------


class TestQueryLogging:
    """Statements executed during an operation are counted on its context."""

    def test_counts_statements_for_bound_operation(self):
        engine = create_engine("sqlite://")
        install_query_logging(engine)
        ctx = OperationContext(kind=OperationKind.REQUEST, name="/feed")
        ctx.metrics = RequestMetrics(start_time=0.0, start_memory=0)
        ctx.enable_query_log()

        token = bind_operation(ctx)
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
                conn.execute(text("SELECT 2"))
        finally:
            unbind_operation(token)

        assert ctx.metrics.query_count == 2
        assert ctx.queries == ["SELECT 1", "SELECT 2"]

    def test_statements_outside_operation_are_ignored(self):
        engine = create_engine("sqlite://")
        install_query_logging(engine)

        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def test_install_is_idempotent(self):
        engine = create_engine("sqlite://")
        install_query_logging(engine)
        install_query_logging(engine)
        ctx = OperationContext(kind=OperationKind.TASK, name="digest")
        ctx.enable_query_log()

        token = bind_operation(ctx)
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        finally:
            unbind_operation(token)

        assert ctx.queries == ["SELECT 1"]


# ---------------------------------------------------------------------------
# ORM registry / connection resolver
# ---------------------------------------------------------------------------


class TestSqlAlchemyOrmRegistry:
    """clear() only touches a session that exists for the current scope."""

    def test_expunges_existing_session(self):
        session = MagicMock()
        scoped = MagicMock(return_value=session)
        scoped.registry.has.return_value = True

        SqlAlchemyOrmRegistry(scoped).clear()

        session.expunge_all.assert_called_once()

    def test_no_session_is_noop(self):
        scoped = MagicMock()
        scoped.registry.has.return_value = False

        SqlAlchemyOrmRegistry(scoped).clear()

        scoped.assert_not_called()


class TestSqlAlchemyConnectionResolver:
    """purge() removes the scoped session."""

    @pytest.mark.asyncio
    async def test_purge_removes_scoped_session(self):
        scoped = MagicMock()
        scoped.remove = AsyncMock()

        await SqlAlchemyConnectionResolver(scoped).purge()

        scoped.remove.assert_awaited_once()
