"""Health check response schemas."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel


class CheckStatus(str, Enum):
    """Status of an individual dependency check."""

    up = "up"
    down = "down"
    skipped = "skipped"


class DependencyCheck(BaseModel):
    """Result of a single dependency health check."""

    status: CheckStatus
    latency_ms: float | None = None
    error: str | None = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "up",
                "latency_ms": 1.23,
                "error": None,
            }
        }
    }


class ReadinessResponse(BaseModel):
    """Response from the readiness probe."""

    status: Literal["ready", "not_ready"]
    checks: dict[str, DependencyCheck]

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "ready",
                "checks": {
                    "postgres": {"status": "up", "latency_ms": 1.23, "error": None},
                    "redis": {"status": "up", "latency_ms": 0.45, "error": None},
                },
            }
        }
    }


class LivenessResponse(BaseModel):
    """Response from the liveness probe."""

    status: Literal["alive"] = "alive"


# ---------------------------------------------------------------------------
# Worker diagnostics (operator health check)
# ---------------------------------------------------------------------------


class ResultStatus(str, Enum):
    """Outcome of one worker diagnostic check."""

    ok = "ok"
    error = "error"


class HealthCheckResult(BaseModel):
    """Result of a single worker diagnostic check."""

    check_name: str
    status: ResultStatus
    message: str

    @property
    def passed(self) -> bool:
        return self.status == ResultStatus.ok


class HealthReport(BaseModel):
    """Aggregated results of a worker diagnostic sweep."""

    results: list[HealthCheckResult]

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed(self) -> int:
        return sum(1 for result in self.results if result.passed)

    @property
    def ok(self) -> bool:
        return self.passed == self.total

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1
