"""Health sub-package: readiness probes, the readiness service and operator diagnostics."""

from devsocial.core.health.protocols import HealthProbe, HealthServiceProtocol, WorkerCheck
from devsocial.core.health.service import HealthService

__all__ = ["HealthProbe", "HealthService", "HealthServiceProtocol", "WorkerCheck"]
