"""Unit tests for StateReset."""

from unittest.mock import MagicMock

import pytest

from devsocial.adapters.cache import FakeTaggedCache
from devsocial.adapters.database.fake import FakeConnectionResolver, FakeOrmRegistry
from devsocial.core.context import OperationContext, OperationKind
from devsocial.core.worker.gc_policy import DisabledGcPolicy, IntervalGcPolicy
from devsocial.core.worker.reset import StateReset, user_cache_keys
from devsocial.core.worker.state import REQUEST_DATA_BINDING, SharedViewState, WorkerBindings


@pytest.fixture
def cache():
    return FakeTaggedCache()


@pytest.fixture
def views():
    return SharedViewState()


@pytest.fixture
def bindings():
    return WorkerBindings()


@pytest.fixture
def orm():
    return FakeOrmRegistry()


@pytest.fixture
def connections():
    return FakeConnectionResolver()


@pytest.fixture
def collect():
    return MagicMock(return_value=0)


@pytest.fixture
def reset(cache, views, bindings, orm, connections, collect):
    return StateReset(
        cache,
        views,
        bindings,
        orm,
        connections,
        IntervalGcPolicy(3),
        collect=collect,
        query_log_warning=50,
    )


@pytest.fixture
def ctx():
    return OperationContext(kind=OperationKind.REQUEST, name="/feed", method="GET")


# ---------------------------------------------------------------------------
# before_operation
# ---------------------------------------------------------------------------


class TestBeforeOperation:
    @pytest.mark.asyncio
    async def test_authenticated_flushes_user_data_tag(self, reset, cache, ctx):
        await cache.put("user.7.profile", {"name": "ada"}, tags=["user-data"])
        await cache.put("trending", [1, 2, 3])
        ctx.login("7")

        await reset.before_operation(ctx)

        assert cache.flushed_tags == ["user-data"]
        assert not cache.has("user.7.profile")
        assert cache.has("trending")

    @pytest.mark.asyncio
    async def test_guest_leaves_tagged_entries(self, reset, cache, ctx):
        await reset.before_operation(ctx)

        assert cache.flushed_tags == []

    @pytest.mark.asyncio
    async def test_clears_views_and_request_binding(self, reset, views, bindings, ctx):
        views.share("flash", "saved")
        bindings.bind(REQUEST_DATA_BINDING, {"draft": 1})
        bindings.bind("router", object())

        await reset.before_operation(ctx)

        assert views.shared() == {}
        assert not bindings.bound(REQUEST_DATA_BINDING)
        assert bindings.bound("router")


# ---------------------------------------------------------------------------
# inspect_query_log
# ---------------------------------------------------------------------------


class TestInspectQueryLog:
    def test_disabled_log_is_ignored(self, reset, ctx):
        ctx.queries.extend(["SELECT 1"] * 80)
        assert reset.inspect_query_log(ctx) == 0

    def test_large_log_warns_before_discard(self, reset, ctx):
        ctx.logger = MagicMock()
        ctx.enable_query_log()
        for i in range(51):
            ctx.record_query(f"SELECT {i}")

        assert reset.inspect_query_log(ctx) == 51
        ctx.logger.warning.assert_called_once()
        assert ctx.logger.warning.call_args.kwargs["extra"] == {"query_count": 51, "url": "/feed"}
        assert len(ctx.queries) == 51

    def test_fifty_statements_do_not_warn(self, reset, ctx):
        ctx.logger = MagicMock()
        ctx.enable_query_log()
        ctx.queries.extend(["SELECT 1"] * 50)

        reset.inspect_query_log(ctx)

        ctx.logger.warning.assert_not_called()


# ---------------------------------------------------------------------------
# after_operation
# ---------------------------------------------------------------------------


class TestAfterOperation:
    @pytest.mark.asyncio
    async def test_authenticated_operation_leaves_no_identity_or_user_keys(self, reset, cache, ctx):
        ctx.login("42")
        for key in user_cache_keys("42"):
            await cache.put(key, ["stale"])
        await cache.put("active_users", 17)
        await cache.put("online_count", 9)
        await cache.put("user.43.following", ["someone else"])

        await reset.after_operation(ctx)

        assert ctx.user_id is None
        assert not ctx.is_authenticated
        for key in ("user.42.following", "user.42.notifications", "user.42.bookmarks"):
            assert not cache.has(key)
        assert not cache.has("active_users")
        assert not cache.has("online_count")
        assert cache.has("user.43.following")

    @pytest.mark.asyncio
    async def test_guest_only_forgets_aggregates(self, reset, cache, ctx):
        await reset.after_operation(ctx)

        assert cache.forgotten == ["active_users", "online_count"]

    @pytest.mark.asyncio
    async def test_flushes_started_session(self, reset, ctx):
        ctx.session.start("sess-1", {"cart": [3]})

        await reset.after_operation(ctx)

        assert not ctx.session.is_started()
        assert ctx.session.data == {}

    @pytest.mark.asyncio
    async def test_clears_orm_connections_and_views(self, reset, orm, connections, views, ctx):
        views.share("title", "Feed")

        await reset.after_operation(ctx)

        assert orm.clear_calls == 1
        assert connections.purge_calls == 1
        assert views.shared() == {}

    @pytest.mark.asyncio
    async def test_failing_step_does_not_stop_the_rest(
        self, cache, views, bindings, connections, ctx
    ):
        orm = FakeOrmRegistry(error=RuntimeError("identity map corrupted"))
        cache.fail_on.add("user.5.following")
        reset = StateReset(cache, views, bindings, orm, connections, DisabledGcPolicy())
        ctx.login("5")

        await reset.after_operation(ctx)

        assert "user.5.bookmarks" in cache.forgotten
        assert ctx.user_id is None
        assert connections.purge_calls == 1

    @pytest.mark.asyncio
    async def test_gc_follows_policy(self, reset, collect):
        for _ in range(7):
            await reset.after_operation(OperationContext(kind=OperationKind.TASK, name="digest"))

        assert collect.call_count == 2
        assert reset.collections == 2
        assert reset.operations == 7

    @pytest.mark.asyncio
    async def test_sequence_recorded_on_context(self, reset, ctx):
        await reset.after_operation(OperationContext(kind=OperationKind.REQUEST, name="/a"))
        await reset.after_operation(ctx)

        assert ctx.sequence == 2
