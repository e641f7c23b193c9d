"""Request isolation for long-lived workers.

A worker handles many operations in the same memory space. ``StateReset``
clears whatever one operation may have left behind so that the next one
observes the same state a fresh process would:

- ``before_operation`` drops stale per-user cache entries, shared view
  state and request-scoped bindings before new work starts.
- ``after_operation`` forgets per-user and aggregate cache keys, logs the
  identity out, flushes the session bag, clears ORM bookkeeping, releases
  pooled connection resolvers and occasionally runs a full GC.

Each step is isolated: a failing step is logged and the remaining steps
still run. Callers invoke ``after_operation`` from a ``finally`` block so it
also runs when the operation raised.
"""

import asyncio
import gc
import inspect
from typing import Any, Awaitable, Callable, Union

from devsocial.core.context import OperationContext
from devsocial.core.protocols.cache import TaggedCache
from devsocial.core.protocols.worker_state import (
    ConnectionResolver,
    OrmRegistry,
    RequestBindings,
    ViewState,
)
from devsocial.core.worker.gc_policy import GcPolicy
from devsocial.core.worker.state import REQUEST_DATA_BINDING

USER_DATA_TAG = "user-data"

USER_CACHE_KEYS = (
    "user.{user_id}.following",
    "user.{user_id}.notifications",
    "user.{user_id}.bookmarks",
)

GLOBAL_CACHE_KEYS = ("active_users", "online_count")

Step = Callable[[], Union[Any, Awaitable[Any]]]


def user_cache_keys(user_id: str) -> tuple[str, ...]:
    """Per-user cache keys cleared when an operation for *user_id* ends."""
    return tuple(template.format(user_id=user_id) for template in USER_CACHE_KEYS)


class StateReset:
    """Reset worker state at operation boundaries.

    Args:
        cache: Application cache holding per-user and aggregate entries.
        views: Shared view-rendering state.
        bindings: Request-scoped singletons bound on the worker.
        orm: ORM bookkeeping to clear after each operation.
        connections: Datastore connection resolver to purge.
        gc_policy: Decides which operations end with a full collection.
        collect: The collector to run (``gc.collect``).
        query_log_warning: Logged query count above which a warning fires
            before the log is discarded.
    """

    def __init__(
        self,
        cache: TaggedCache,
        views: ViewState,
        bindings: RequestBindings,
        orm: OrmRegistry,
        connections: ConnectionResolver,
        gc_policy: GcPolicy,
        *,
        collect: Callable[[], int] = gc.collect,
        query_log_warning: int = 50,
    ) -> None:
        self._cache = cache
        self._views = views
        self._bindings = bindings
        self._orm = orm
        self._connections = connections
        self._gc_policy = gc_policy
        self._collect = collect
        self._query_log_warning = query_log_warning
        self._operations = 0
        self.collections = 0

    @property
    def operations(self) -> int:
        """Operations this worker has finished."""
        return self._operations

    # -- pre-operation -------------------------------------------------------

    async def before_operation(self, ctx: OperationContext) -> None:
        """Drop stale state before *ctx* starts doing work.

        The user-data flush only happens when the identity is attached before
        this runs; for HTTP requests that is ``app.state.identify``.
        """
        if ctx.is_authenticated:
            await self._attempt(
                ctx, "flush user-data tag", lambda: self._cache.flush_tags(USER_DATA_TAG)
            )
        await self._attempt(ctx, "flush view state", self._views.flush_state)
        await self._attempt(ctx, "forget request bindings", self._forget_request_data)

    # -- post-operation ------------------------------------------------------

    def inspect_query_log(self, ctx: OperationContext) -> int:
        """Warn about a large query log before anything discards it.

        Returns:
            Number of logged statements (0 when query logging is off).
        """
        if not ctx.query_log_enabled:
            return 0
        logged = len(ctx.queries)
        if logged > self._query_log_warning:
            ctx.logger.warning(
                "High query count detected",
                extra={"query_count": logged, "url": ctx.name},
            )
        return logged

    async def after_operation(self, ctx: OperationContext) -> None:
        """Clear everything *ctx* may have left on the worker."""
        self._operations += 1
        ctx.sequence = self._operations

        user_id = ctx.user_id
        if user_id is not None:
            for key in user_cache_keys(user_id):
                await self._attempt(ctx, f"forget {key}", lambda key=key: self._cache.forget(key))
        for key in GLOBAL_CACHE_KEYS:
            await self._attempt(ctx, f"forget {key}", lambda key=key: self._cache.forget(key))

        ctx.logout()
        if ctx.session.is_started():
            await self._attempt(ctx, "flush session", ctx.session.flush)

        await self._attempt(ctx, "clear ORM registry", self._orm.clear)
        await self._attempt(ctx, "purge connections", self._connections.purge)
        await self._attempt(ctx, "flush view state", self._views.flush_state)
        await self._attempt(ctx, "collect garbage", lambda: self._maybe_collect(ctx.sequence))

    # -- helpers -------------------------------------------------------------

    def _forget_request_data(self) -> None:
        if self._bindings.bound(REQUEST_DATA_BINDING):
            self._bindings.forget_instance(REQUEST_DATA_BINDING)

    def _maybe_collect(self, sequence: int) -> bool:
        if not self._gc_policy.should_collect(sequence):
            return False
        self._collect()
        self.collections += 1
        return True

    async def _attempt(self, ctx: OperationContext, description: str, step: Step) -> None:
        try:
            result = step()
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            ctx.logger.warning(f"State reset step '{description}' failed: {exc}", exc_info=True)
