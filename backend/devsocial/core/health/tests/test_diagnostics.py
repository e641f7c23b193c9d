"""Unit tests for the operator diagnostic sweep."""

import httpx
import pytest

from devsocial.adapters.queue.fake import FakeJobQueue
from devsocial.core.health.diagnostics import (
    DeferredCheck,
    MemoryCheck,
    ProbeCheck,
    QueueBacklogCheck,
    ResponseTimeCheck,
    ServerCheck,
    WorkerDiagnostics,
)
from devsocial.core.health.fakes import FakeFailingProbe, FakeProbe, FakeWorkerCheck
from devsocial.core.worker.memory import FakeMemoryProbe
from devsocial.schemas.health import CheckStatus, ResultStatus
from devsocial.schemas.job import Job

MB = 1024 * 1024


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _healthy(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"status": "ready"})


def _refused(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("All connection attempts failed", request=request)


def _diagnostics(client, *, database=None, redis=None, queue=None, memory=None, port=8000):
    return WorkerDiagnostics(
        [
            ServerCheck(client, port),
            MemoryCheck(memory or FakeMemoryProbe(current=100 * MB, peak=150 * MB), 512),
            ProbeCheck("database", "Database", database or FakeProbe("postgres", latency_ms=1.2)),
            ProbeCheck("redis", "Redis", redis or FakeProbe("redis", latency_ms=0.4)),
            ResponseTimeCheck(client, port, 2000),
            QueueBacklogCheck(queue or FakeJobQueue()),
        ]
    )


# ---------------------------------------------------------------------------
# Full sweep
# ---------------------------------------------------------------------------


class TestWorkerDiagnostics:
    """The sweep always reports six results in a fixed order."""

    @pytest.mark.asyncio
    async def test_all_checks_pass(self):
        async with _client(_healthy) as client:
            report = await _diagnostics(client).run()

        assert [r.check_name for r in report.results] == [
            "server",
            "memory",
            "database",
            "redis",
            "response_time",
            "workers",
        ]
        assert report.passed == 6
        assert report.exit_code == 0

    @pytest.mark.asyncio
    async def test_database_failure_fails_report(self):
        database = FakeFailingProbe("postgres", ConnectionRefusedError("refused"))
        async with _client(_healthy) as client:
            report = await _diagnostics(client, database=database).run()

        assert report.total == 6
        assert report.passed == 5
        assert report.exit_code == 1
        database_result = report.results[2]
        assert database_result.status == ResultStatus.error
        assert database_result.message == "Database connection failed: refused"

    @pytest.mark.asyncio
    async def test_no_listener_on_port(self):
        async with _client(_refused) as client:
            report = await _diagnostics(client, port=9999).run()

        server, response_time = report.results[0], report.results[4]
        assert server.status == ResultStatus.error
        assert server.message.startswith("Cannot connect to worker server on port 9999: ")
        assert response_time.message.startswith("Response time check failed: ")
        assert report.total == 6
        assert report.passed == 4
        assert report.exit_code == 1

    @pytest.mark.asyncio
    async def test_raising_check_does_not_stop_sweep(self):
        later = FakeWorkerCheck("later")
        diagnostics = WorkerDiagnostics(
            [FakeWorkerCheck("boom", exc=RuntimeError("kaput")), later]
        )

        report = await diagnostics.run()

        assert report.results[0].message == "boom failed: kaput"
        assert later.runs == 1
        assert report.passed == 1


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


class TestServerCheck:
    @pytest.mark.asyncio
    async def test_hits_liveness_endpoint(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(204)

        async with _client(handler) as client:
            result = await ServerCheck(client, 8123).run()

        assert seen == ["http://127.0.0.1:8123/health"]
        assert result.message == "Worker server is running on port 8123"

    @pytest.mark.asyncio
    async def test_non_2xx_is_error(self):
        async with _client(lambda request: httpx.Response(503)) as client:
            result = await ServerCheck(client, 8000).run()

        assert result.status == ResultStatus.error
        assert result.message == "Worker server responded with status 503"


class TestMemoryCheck:
    @pytest.mark.asyncio
    async def test_below_threshold(self):
        result = await MemoryCheck(FakeMemoryProbe(current=100 * MB, peak=150 * MB), 512).run()

        assert result.passed
        assert result.message == "Memory usage: 100.0MB (Peak: 150.0MB) - Below threshold (512MB)"

    @pytest.mark.asyncio
    async def test_at_threshold_is_above(self):
        result = await MemoryCheck(FakeMemoryProbe(current=512 * MB), 512).run()

        assert not result.passed
        assert result.message.endswith("Above threshold (512MB)")


class TestProbeCheck:
    @pytest.mark.asyncio
    async def test_latency_in_message(self):
        result = await ProbeCheck("redis", "Redis", FakeProbe("redis", latency_ms=0.42)).run()

        assert result.message == "Redis connection OK (0.42ms)"

    @pytest.mark.asyncio
    async def test_down_status_is_error(self):
        probe = FakeProbe("redis", status=CheckStatus.down, error="no PONG reply")
        result = await ProbeCheck("redis", "Redis", probe).run()

        assert result.message == "Redis connection failed: no PONG reply"


class TestResponseTimeCheck:
    @pytest.mark.asyncio
    async def test_slow_response_is_error(self):
        ticks = iter([10.0, 12.5])
        async with _client(_healthy) as client:
            check = ResponseTimeCheck(client, 8000, 2000, clock=lambda: next(ticks))
            result = await check.run()

        assert not result.passed
        assert result.message == "Response time: 2500ms - Above threshold (2000ms)"

    @pytest.mark.asyncio
    async def test_fast_response_is_ok(self):
        ticks = iter([10.0, 10.015])
        async with _client(_healthy) as client:
            check = ResponseTimeCheck(client, 8000, 2000, clock=lambda: next(ticks))
            result = await check.run()

        assert result.message == "Response time: 15ms - Below threshold (2000ms)"


class TestQueueBacklogCheck:
    @pytest.mark.asyncio
    async def test_backlog_of_exactly_100_is_ok(self):
        queue = FakeJobQueue()
        for _ in range(60):
            await queue.push("default", Job(name="noop"))
        for _ in range(40):
            await queue.push("notifications", Job(name="noop"))
        await queue.push("media", Job(name="noop"))

        result = await QueueBacklogCheck(queue).run()

        assert result.passed
        assert result.message == "Queue status: 100 pending jobs"

    @pytest.mark.asyncio
    async def test_backlog_over_100_is_error(self):
        queue = FakeJobQueue()
        for _ in range(101):
            await queue.push("default", Job(name="noop"))

        result = await QueueBacklogCheck(queue).run()

        assert result.message == "Queue backlog: 101 pending jobs - Workers may be overloaded"


class TestDeferredCheck:
    @pytest.mark.asyncio
    async def test_build_failure_is_this_checks_error(self):
        def build():
            raise ModuleNotFoundError("No module named 'asyncpg'")

        later = FakeWorkerCheck("later")
        diagnostics = WorkerDiagnostics([DeferredCheck("database", "Database", build), later])

        report = await diagnostics.run()

        assert report.results[0].check_name == "database"
        assert report.results[0].status == ResultStatus.error
        assert report.results[0].message == (
            "Database check could not start: No module named 'asyncpg'"
        )
        assert later.runs == 1

    @pytest.mark.asyncio
    async def test_built_check_describes_its_own_failure(self):
        probe = FakeFailingProbe("redis", ConnectionError("refused"))
        deferred = DeferredCheck("redis", "Redis", lambda: ProbeCheck("redis", "Redis", probe))

        report = await WorkerDiagnostics([deferred]).run()

        assert report.results[0].message.startswith("Redis connection failed")

    @pytest.mark.asyncio
    async def test_builds_once(self):
        builds = []

        def build():
            builds.append(1)
            return FakeWorkerCheck("memory")

        deferred = DeferredCheck("memory", "Memory", build)
        await deferred.run()
        result = await deferred.run()

        assert len(builds) == 1
        assert result.status == ResultStatus.ok
