"""Operator diagnostics for a running worker server.

``WorkerDiagnostics`` runs six checks in a fixed order and folds them into a
``HealthReport``:

    server         GET /health answers with 2xx (liveness)
    memory         resident memory is below the threshold
    database       SELECT 1 succeeds
    redis          PING succeeds
    response_time  GET /api/health answers within the threshold
    workers        queue backlog is at most 100 pending jobs

Every check runs even when an earlier one failed. An exception escaping a
check becomes that check's ``error`` result.
"""

import time
from typing import Callable, Iterable, Optional, Sequence

import httpx

from devsocial.core.health.protocols import HealthProbe, WorkerCheck
from devsocial.core.logging import logger
from devsocial.core.protocols.metrics import MemoryProbe
from devsocial.core.protocols.queue import JobQueue
from devsocial.core.worker.memory import bytes_to_mb
from devsocial.schemas.health import CheckStatus, HealthCheckResult, HealthReport, ResultStatus

SERVER_TIMEOUT_SECONDS = 5.0
RESPONSE_TIME_TIMEOUT_SECONDS = 10.0
MAX_QUEUE_BACKLOG = 100


def _ok(name: str, message: str) -> HealthCheckResult:
    return HealthCheckResult(check_name=name, status=ResultStatus.ok, message=message)


def _error(name: str, message: str) -> HealthCheckResult:
    return HealthCheckResult(check_name=name, status=ResultStatus.error, message=message)


def _local_url(port: int, path: str) -> str:
    return f"http://127.0.0.1:{port}{path}"


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


class ServerCheck(WorkerCheck):
    """Liveness of the worker server on *port*."""

    name = "server"

    def __init__(
        self, client: httpx.AsyncClient, port: int, timeout: float = SERVER_TIMEOUT_SECONDS
    ) -> None:
        self._client = client
        self._port = port
        self._timeout = timeout

    async def run(self) -> HealthCheckResult:
        response = await self._client.get(_local_url(self._port, "/health"), timeout=self._timeout)
        if response.is_success:
            return _ok(self.name, f"Worker server is running on port {self._port}")
        return _error(self.name, f"Worker server responded with status {response.status_code}")

    def describe_failure(self, exc: Exception) -> str:
        return f"Cannot connect to worker server on port {self._port}: {exc}"


class MemoryCheck(WorkerCheck):
    """Resident memory against a threshold in megabytes."""

    name = "memory"

    def __init__(self, memory: MemoryProbe, threshold_mb: int) -> None:
        self._memory = memory
        self._threshold_mb = threshold_mb

    async def run(self) -> HealthCheckResult:
        current = self._memory.current()
        current_mb = bytes_to_mb(current)
        peak_mb = bytes_to_mb(self._memory.peak())
        below = current < self._threshold_mb * 1024 * 1024
        message = (
            f"Memory usage: {current_mb}MB (Peak: {peak_mb}MB) - "
            f"{'Below' if below else 'Above'} threshold ({self._threshold_mb}MB)"
        )
        return _ok(self.name, message) if below else _error(self.name, message)

    def describe_failure(self, exc: Exception) -> str:
        return f"Memory check failed: {exc}"


class ProbeCheck(WorkerCheck):
    """Connectivity check backed by a readiness ``HealthProbe``.

    Latency is reported, not gated.
    """

    def __init__(self, name: str, label: str, probe: HealthProbe) -> None:
        self._name = name
        self._label = label
        self._probe = probe

    @property
    def name(self) -> str:
        return self._name

    async def run(self) -> HealthCheckResult:
        result = await self._probe.check()
        if result.status == CheckStatus.down:
            return _error(self.name, self.describe_failure(RuntimeError(result.error or "down")))
        latency = result.latency_ms if result.latency_ms is not None else 0.0
        return _ok(self.name, f"{self._label} connection OK ({latency}ms)")

    def describe_failure(self, exc: Exception) -> str:
        return f"{self._label} connection failed: {exc}"


class ResponseTimeCheck(WorkerCheck):
    """Round-trip time of the readiness endpoint against a threshold in ms."""

    name = "response_time"

    def __init__(
        self,
        client: httpx.AsyncClient,
        port: int,
        threshold_ms: int,
        timeout: float = RESPONSE_TIME_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._client = client
        self._port = port
        self._threshold_ms = threshold_ms
        self._timeout = timeout
        self._clock = clock

    async def run(self) -> HealthCheckResult:
        started = self._clock()
        await self._client.get(_local_url(self._port, "/api/health"), timeout=self._timeout)
        duration_ms = round((self._clock() - started) * 1000)
        below = duration_ms < self._threshold_ms
        message = (
            f"Response time: {duration_ms}ms - "
            f"{'Below' if below else 'Above'} threshold ({self._threshold_ms}ms)"
        )
        return _ok(self.name, message) if below else _error(self.name, message)

    def describe_failure(self, exc: Exception) -> str:
        return f"Response time check failed: {exc}"


class QueueBacklogCheck(WorkerCheck):
    """Pending jobs summed over the backlog queues; at most 100 is healthy."""

    name = "workers"

    def __init__(self, queue: JobQueue, queues: Iterable[str] = ("default", "notifications")):
        self._queue = queue
        self._queues = tuple(queues)

    async def run(self) -> HealthCheckResult:
        pending = 0
        for queue_name in self._queues:
            pending += await self._queue.size(queue_name)
        if pending > MAX_QUEUE_BACKLOG:
            return _error(
                self.name, f"Queue backlog: {pending} pending jobs - Workers may be overloaded"
            )
        return _ok(self.name, f"Queue status: {pending} pending jobs")

    def describe_failure(self, exc: Exception) -> str:
        return f"Queue worker check failed: {exc}"


class DeferredCheck(WorkerCheck):
    """Check whose dependencies are built on first run.

    A failure to build (missing driver, bad settings) becomes this check's
    error result instead of aborting the whole sweep.
    """

    def __init__(self, name: str, label: str, build: Callable[[], WorkerCheck]) -> None:
        self._name = name
        self._label = label
        self._build = build
        self._check: Optional[WorkerCheck] = None

    @property
    def name(self) -> str:
        return self._name

    async def run(self) -> HealthCheckResult:
        if self._check is None:
            self._check = self._build()
        return await self._check.run()

    def describe_failure(self, exc: Exception) -> str:
        if self._check is not None:
            return self._check.describe_failure(exc)
        return f"{self._label} check could not start: {exc}"


# ---------------------------------------------------------------------------
# Sweep
# ---------------------------------------------------------------------------


class WorkerDiagnostics:
    """Run a fixed sequence of ``WorkerCheck``s and collect their results."""

    def __init__(self, checks: Sequence[WorkerCheck]) -> None:
        self._checks = tuple(checks)

    @property
    def checks(self) -> tuple[WorkerCheck, ...]:
        return self._checks

    async def run(self) -> HealthReport:
        results = []
        for check in self._checks:
            results.append(await self._run_check(check))
        return HealthReport(results=results)

    @staticmethod
    async def _run_check(check: WorkerCheck) -> HealthCheckResult:
        try:
            return await check.run()
        except Exception as exc:
            logger.debug(f"Health check '{check.name}' raised: {exc!r}")
            return _error(check.name, check.describe_failure(exc))
