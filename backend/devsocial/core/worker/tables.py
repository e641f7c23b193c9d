"""Shared tables used by the worker runtime and the session activity recorder."""

import json
import time
from typing import Callable

from devsocial.core.config import Settings
from devsocial.core.context import OperationContext
from devsocial.core.protocols.shared_table import SharedTable
from devsocial.schemas.shared_table import Column, ColumnType, TableSchema

USER_SESSIONS = "user_sessions"
RATE_LIMITS = "rate_limits"


def user_sessions_schema(size: int = 10_000) -> TableSchema:
    return TableSchema(
        name=USER_SESSIONS,
        size=size,
        columns=[
            Column(name="user_id", type=ColumnType.INT),
            Column(name="last_activity", type=ColumnType.INT),
            Column(name="data", type=ColumnType.STRING, size=1024),
        ],
    )


def rate_limits_schema(size: int = 100_000) -> TableSchema:
    return TableSchema(
        name=RATE_LIMITS,
        size=size,
        columns=[
            Column(name="requests", type=ColumnType.INT),
            Column(name="reset_time", type=ColumnType.INT),
        ],
    )


def default_table_schemas(settings: Settings) -> dict[str, TableSchema]:
    """The tables every worker process shares, sized from *settings*."""
    return {
        USER_SESSIONS: user_sessions_schema(settings.SESSION_TABLE_ROWS),
        RATE_LIMITS: rate_limits_schema(settings.RATE_LIMIT_TABLE_ROWS),
    }


class SessionActivityRecorder:
    """Write the last activity of authenticated users to ``user_sessions``.

    The row is keyed by user id; ``data`` holds the JSON-encoded session bag
    (truncated to the column width by the table).
    """

    def __init__(self, table: SharedTable, clock: Callable[[], float] = time.time) -> None:
        self._table = table
        self._clock = clock

    async def record(self, ctx: OperationContext) -> None:
        if not ctx.is_authenticated:
            return
        user_id = ctx.user_id
        row = {
            "user_id": int(user_id) if user_id.isdigit() else 0,
            "last_activity": int(self._clock()),
            "data": json.dumps(ctx.session.data, default=str),
        }
        await self._table.set(user_id, row)
