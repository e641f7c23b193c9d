"""Per-operation query counting for SQLAlchemy engines.

A ``before_cursor_execute`` listener forwards every statement to the
operation bound to the running context. Statements executed outside an
operation (startup, health probes on their own engine) are not counted.
"""

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import AsyncEngine

from devsocial.core.context import current_operation


def _record_statement(conn, cursor, statement, parameters, context, executemany) -> None:
    ctx = current_operation()
    if ctx is not None:
        ctx.record_query(statement)


def install_query_logging(engine: AsyncEngine | Engine) -> None:
    """Attach the statement counter to *engine* (idempotent)."""
    target = engine.sync_engine if isinstance(engine, AsyncEngine) else engine
    if not event.contains(target, "before_cursor_execute", _record_statement):
        event.listen(target, "before_cursor_execute", _record_statement)
