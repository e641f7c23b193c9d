"""Fakes for health probes, diagnostic checks and the readiness service."""

import asyncio
from typing import Optional

from devsocial.core.health.protocols import HealthProbe, HealthServiceProtocol, WorkerCheck
from devsocial.schemas.health import (
    CheckStatus,
    DependencyCheck,
    HealthCheckResult,
    ReadinessResponse,
    ResultStatus,
)


class FakeHealthService(HealthServiceProtocol):
    """Readiness service returning a canned response; records every call."""

    def __init__(self) -> None:
        self._shutting_down = False
        self._response = ReadinessResponse(
            status="ready",
            checks={"fake": DependencyCheck(status=CheckStatus.up)},
        )
        self.check_readiness_calls: list[dict[str, bool]] = []

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    @shutting_down.setter
    def shutting_down(self, value: bool) -> None:
        self._shutting_down = value

    async def check_readiness(self, *, debug: bool) -> ReadinessResponse:
        self.check_readiness_calls.append({"debug": debug})
        return self._response

    # -- test helpers --

    def set_response(self, response: ReadinessResponse) -> None:
        self._response = response


# ---------------------------------------------------------------------------
# Probes
# ---------------------------------------------------------------------------


class FakeProbe(HealthProbe):
    """Probe answering with a fixed status and latency; counts calls."""

    def __init__(
        self,
        name: str,
        *,
        status: CheckStatus = CheckStatus.up,
        latency_ms: Optional[float] = 1.0,
        error: Optional[str] = None,
    ) -> None:
        self._name = name
        self._status = status
        self._latency_ms = latency_ms
        self._error = error
        self.calls = 0

    @property
    def name(self) -> str:
        return self._name

    async def check(self) -> DependencyCheck:
        self.calls += 1
        return DependencyCheck(status=self._status, latency_ms=self._latency_ms, error=self._error)


class FakeFailingProbe(HealthProbe):
    """Probe that raises *exc* on every check."""

    def __init__(self, name: str, exc: Exception) -> None:
        self._name = name
        self._exc = exc

    @property
    def name(self) -> str:
        return self._name

    async def check(self) -> DependencyCheck:
        raise self._exc


class FakeSlowProbe(HealthProbe):
    """Probe that sleeps past any reasonable timeout."""

    def __init__(self, name: str, delay: float = 10.0) -> None:
        self._name = name
        self._delay = delay

    @property
    def name(self) -> str:
        return self._name

    async def check(self) -> DependencyCheck:
        await asyncio.sleep(self._delay)
        return DependencyCheck(status=CheckStatus.up)


# ---------------------------------------------------------------------------
# Diagnostic checks
# ---------------------------------------------------------------------------


class FakeWorkerCheck(WorkerCheck):
    """Diagnostic check with a canned outcome, or raising *exc*."""

    def __init__(
        self,
        name: str,
        *,
        passed: bool = True,
        message: str = "fine",
        exc: Optional[Exception] = None,
    ) -> None:
        self._name = name
        self._passed = passed
        self._message = message
        self._exc = exc
        self.runs = 0

    @property
    def name(self) -> str:
        return self._name

    async def run(self) -> HealthCheckResult:
        self.runs += 1
        if self._exc is not None:
            raise self._exc
        return HealthCheckResult(
            check_name=self._name,
            status=ResultStatus.ok if self._passed else ResultStatus.error,
            message=self._message,
        )

    def describe_failure(self, exc: Exception) -> str:
        return f"{self._name} failed: {exc}"
