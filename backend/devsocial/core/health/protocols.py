"""Health protocols for dependency injection.

Two families of checks live here:

- ``HealthProbe``: a single infrastructure dependency probed by the
  readiness endpoint (``/api/health``) and reused by the operator
  diagnostics for the datastore and cache checks.
- ``WorkerCheck``: one step of the operator diagnostic sweep run by the
  ``devsocial-health-check`` command against a running worker.
"""

from typing import Protocol, runtime_checkable

from devsocial.schemas.health import DependencyCheck, HealthCheckResult, ReadinessResponse


@runtime_checkable
class HealthProbe(Protocol):
    """Protocol for a single infrastructure health check.

    Implementations return a ``DependencyCheck`` on success and raise on
    failure. Callers own timeouts and error formatting.
    """

    @property
    def name(self) -> str:
        """Identifier surfaced in the readiness response."""
        ...

    async def check(self) -> DependencyCheck:
        """Probe the dependency and return its status with measured latency."""
        ...


@runtime_checkable
class HealthServiceProtocol(Protocol):
    """Facade that orchestrates readiness probes and owns shutdown state."""

    @property
    def shutting_down(self) -> bool:
        """Whether the worker is shutting down."""
        ...

    @shutting_down.setter
    def shutting_down(self, value: bool) -> None: ...

    async def check_readiness(self, *, debug: bool) -> ReadinessResponse:
        """Evaluate readiness by probing dependencies concurrently."""
        ...


@runtime_checkable
class WorkerCheck(Protocol):
    """One check of the operator diagnostic sweep.

    ``run`` returns an ``ok`` or ``error`` result for outcomes it understands
    (non-2xx status, threshold exceeded) and may raise for anything else;
    ``describe_failure`` turns such an exception into the check's message.
    """

    @property
    def name(self) -> str: ...

    async def run(self) -> HealthCheckResult: ...

    def describe_failure(self, exc: Exception) -> str: ...
