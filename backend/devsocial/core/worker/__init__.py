"""Worker runtime: per-operation sampling, state reset and background tasks.

Package structure:
    memory.py      - memory readings and memory-limit parsing
    sampler.py     - MetricsSampler (time / memory / query volume per operation)
    reset.py       - StateReset (isolation between operations)
    gc_policy.py   - when to run a full garbage collection
    state.py       - worker-level view state and request bindings
    hooks.py       - lifecycle listeners wiring sampler and reset together
    tables.py      - shared table schemas and session activity recording
    rate_limit.py  - fixed-window rate limiter on the shared table
    tasks.py       - background task runner
"""

from devsocial.core.worker.gc_policy import (
    DisabledGcPolicy,
    GcPolicy,
    IntervalGcPolicy,
    ProbabilisticGcPolicy,
    create_gc_policy,
)
from devsocial.core.worker.hooks import WorkerHooks, register_worker_hooks
from devsocial.core.worker.memory import (
    UNLIMITED,
    FakeMemoryProbe,
    ProcessMemoryProbe,
    format_bytes,
    parse_memory_limit,
)
from devsocial.core.worker.rate_limit import RateLimiter, RateLimitResult
from devsocial.core.worker.reset import StateReset
from devsocial.core.worker.sampler import MetricsSampler
from devsocial.core.worker.state import SharedViewState, WorkerBindings
from devsocial.core.worker.tables import SessionActivityRecorder, default_table_schemas
from devsocial.core.worker.tasks import TaskRunner

__all__ = [
    "UNLIMITED",
    "DisabledGcPolicy",
    "FakeMemoryProbe",
    "GcPolicy",
    "IntervalGcPolicy",
    "MetricsSampler",
    "ProbabilisticGcPolicy",
    "ProcessMemoryProbe",
    "RateLimitResult",
    "RateLimiter",
    "SessionActivityRecorder",
    "SharedViewState",
    "StateReset",
    "TaskRunner",
    "WorkerBindings",
    "WorkerHooks",
    "create_gc_policy",
    "default_table_schemas",
    "format_bytes",
    "parse_memory_limit",
    "register_worker_hooks",
]
