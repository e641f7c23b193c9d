"""Pydantic schemas shared by the API, the worker runtime and the CLI."""

from devsocial.schemas.health import (
    CheckStatus,
    DependencyCheck,
    HealthCheckResult,
    HealthReport,
    LivenessResponse,
    ReadinessResponse,
    ResultStatus,
)
from devsocial.schemas.job import Job
from devsocial.schemas.shared_table import Column, ColumnType, TableSchema

__all__ = [
    "CheckStatus",
    "Column",
    "ColumnType",
    "DependencyCheck",
    "HealthCheckResult",
    "HealthReport",
    "Job",
    "LivenessResponse",
    "ReadinessResponse",
    "ResultStatus",
    "TableSchema",
]
