"""Worker lifecycle phases and the event fired for each of them."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from devsocial.core.context import OperationContext


class LifecyclePhase(str, Enum):
    """Points in a worker's life at which listeners can run.

    Convention: ``{subject}.{action}``.
    """

    WORKER_STARTING = "worker.starting"
    REQUEST_RECEIVED = "request.received"
    REQUEST_HANDLED = "request.handled"
    REQUEST_TERMINATED = "request.terminated"
    TASK_RECEIVED = "task.received"
    TASK_TERMINATED = "task.terminated"
    WORKER_ERROR_OCCURRED = "worker.error_occurred"
    WORKER_STOPPING = "worker.stopping"


@dataclass(frozen=True)
class LifecycleEvent:
    """A lifecycle phase being entered.

    ``context`` is set for operation phases (request/task) and for errors
    raised while handling an operation; worker start/stop events carry none.
    """

    phase: LifecyclePhase
    context: Optional[OperationContext] = None
    error: Optional[BaseException] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def event_type(self) -> str:
        return self.phase.value
