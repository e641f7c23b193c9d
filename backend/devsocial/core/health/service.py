"""HealthService: readiness facade behind ``/api/health``.

Runs every registered probe concurrently with a per-probe timeout and owns
the ``shutting_down`` flag that a stopping worker raises so load balancers
drain it before the process exits.
"""

import asyncio
import errno
from collections.abc import Sequence

from devsocial.core.health.protocols import HealthProbe, HealthServiceProtocol
from devsocial.core.lifecycle.events import LifecycleEvent
from devsocial.schemas.health import CheckStatus, DependencyCheck, ReadinessResponse


class HealthService(HealthServiceProtocol):
    """Concrete ``HealthServiceProtocol`` implementation.

    *critical* probes gate readiness; *informational* probes are reported
    but never flip the status.
    """

    def __init__(
        self,
        *,
        critical: Sequence[HealthProbe],
        informational: Sequence[HealthProbe] = (),
        timeout: float = 5.0,
    ) -> None:
        """Initialise with critical and informational probe sequences."""
        self._critical = tuple(critical)
        self._informational = tuple(informational)
        self._timeout = timeout
        self._shutting_down = False

    @property
    def shutting_down(self) -> bool:
        """Whether the worker is shutting down."""
        return self._shutting_down

    @shutting_down.setter
    def shutting_down(self, value: bool) -> None:
        self._shutting_down = value

    async def on_worker_stopping(self, event: LifecycleEvent) -> None:
        """Lifecycle listener: stop reporting ready once the worker stops."""
        self._shutting_down = True

    async def check_readiness(self, *, debug: bool) -> ReadinessResponse:
        """Probe all dependencies concurrently and fold them into one response."""
        probes = (*self._critical, *self._informational)

        if self._shutting_down:
            skipped = DependencyCheck(status=CheckStatus.skipped)
            return ReadinessResponse(
                status="not_ready", checks={probe.name: skipped for probe in probes}
            )

        outcomes = await asyncio.gather(*(self._run_probe(probe) for probe in probes))
        critical_names = {probe.name for probe in self._critical}

        checks: dict[str, DependencyCheck] = {}
        ready = True
        for name, outcome in outcomes:
            if not isinstance(outcome, DependencyCheck):
                outcome = DependencyCheck(
                    status=CheckStatus.down,
                    error=self._sanitize_error(outcome, debug=debug),
                )
            checks[name] = outcome
            if outcome.status == CheckStatus.down and name in critical_names:
                ready = False

        return ReadinessResponse(status="ready" if ready else "not_ready", checks=checks)

    async def _run_probe(self, probe: HealthProbe) -> tuple[str, DependencyCheck | Exception]:
        try:
            return probe.name, await asyncio.wait_for(probe.check(), timeout=self._timeout)
        except Exception as exc:
            return probe.name, exc

    @staticmethod
    def _sanitize_error(exc: Exception, *, debug: bool) -> str:
        """Return an error string safe to show outside the cluster.

        Debug mode returns the exception text; otherwise only a coarse
        category, so hostnames and ports never reach the response body.
        """
        if debug:
            return str(exc)

        if isinstance(exc, asyncio.TimeoutError):
            return "timeout"

        cause = exc.__cause__
        code = getattr(exc, "errno", None) or getattr(cause, "errno", None)
        if code == errno.ECONNREFUSED:
            return "connection_refused"

        return "unavailable"
