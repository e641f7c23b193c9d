"""Per-operation context.

Every unit of work a worker handles (one HTTP request or one background task)
gets its own ``OperationContext``. Request metrics, the authenticated
identity, the session bag and the query log live here instead of in
process-wide holders, so nothing survives into the next operation unless a
shared store explicitly keeps it.

The active context is also bound to a ``ContextVar`` for the few callers that
cannot receive it explicitly (the SQLAlchemy query hook).
"""

import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from devsocial.core.logging import ContextualLogger


class OperationKind(str, Enum):
    """What kind of unit of work an operation is."""

    REQUEST = "request"
    TASK = "task"


@dataclass
class RequestMetrics:
    """Resource sample taken when an operation starts."""

    start_time: float
    start_memory: int
    query_count: int = 0


@dataclass
class SessionBag:
    """In-memory session data loaded for the current operation."""

    session_id: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)

    def start(self, session_id: str, data: Optional[dict[str, Any]] = None) -> None:
        self.session_id = session_id
        self.data = dict(data or {})

    def is_started(self) -> bool:
        return self.session_id is not None

    def flush(self) -> None:
        self.session_id = None
        self.data.clear()


@dataclass
class OperationContext:
    """State owned by exactly one in-flight operation.

    ``name`` is the request URL for HTTP requests and the job name for
    background tasks.
    """

    kind: OperationKind
    name: str
    method: Optional[str] = None
    operation_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    user_id: Optional[str] = None
    metrics: Optional[RequestMetrics] = None
    session: SessionBag = field(default_factory=SessionBag)
    query_log_enabled: bool = False
    queries: list[str] = field(default_factory=list)
    sequence: int = 0

    logger: ContextualLogger = field(default=None, repr=False)

    def __post_init__(self):
        """Derive a contextual logger from the operation identity."""
        if self.logger is None:
            from devsocial.core.logging import logger as base_logger

            self.logger = base_logger.with_context(
                operation_id=self.operation_id,
                operation=self.kind.value,
                url=self.name,
            )

    @property
    def is_authenticated(self) -> bool:
        """Whether an identity is attached to this operation."""
        return self.user_id is not None

    def login(self, user_id: str) -> None:
        self.user_id = str(user_id)

    def logout(self) -> None:
        self.user_id = None

    # -- query log -----------------------------------------------------------

    def enable_query_log(self) -> None:
        self.query_log_enabled = True

    def record_query(self, statement: str) -> None:
        """Count a statement; keep its text only while query logging is on."""
        if self.metrics is not None:
            self.metrics.query_count += 1
        if self.query_log_enabled:
            self.queries.append(statement)

    def flush_query_log(self) -> None:
        self.queries.clear()
        if self.metrics is not None:
            self.metrics.query_count = 0


_current_operation: ContextVar[Optional[OperationContext]] = ContextVar(
    "devsocial_current_operation", default=None
)


def current_operation() -> Optional[OperationContext]:
    """Return the operation bound to the running context, if any."""
    return _current_operation.get()


def bind_operation(ctx: OperationContext) -> Token:
    """Bind *ctx* as the current operation; returns a token for ``unbind_operation``."""
    return _current_operation.set(ctx)


def unbind_operation(token: Token) -> None:
    _current_operation.reset(token)
