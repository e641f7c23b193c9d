"""In-process lifecycle dispatcher.

The hosting runtime (FastAPI middleware, lifespan, task runner) fires a
``LifecycleEvent`` at each phase; listeners registered for that phase run
in registration order.

Unlike a fan-out event bus, listeners run sequentially: cleanup listeners
depend on seeing state before later listeners discard it.
"""

import logging
from collections import defaultdict
from typing import Awaitable, Callable

from devsocial.core.exceptions import LifecycleError
from devsocial.core.lifecycle.events import LifecycleEvent, LifecyclePhase

# Standard logging avoids a circular import with devsocial.core.logging
logger = logging.getLogger(__name__)

LifecycleListener = Callable[[LifecycleEvent], Awaitable[None]]


class LifecycleDispatcher:
    """Per-phase ordered listener registry.

    Usage:
        dispatcher = LifecycleDispatcher()
        dispatcher.listen(LifecyclePhase.REQUEST_RECEIVED, hooks.on_operation_start)
        dispatcher.listen(LifecyclePhase.REQUEST_TERMINATED, hooks.on_operation_end)
        await dispatcher.dispatch(LifecycleEvent(LifecyclePhase.REQUEST_RECEIVED, ctx))
    """

    def __init__(self) -> None:
        """Initialize with no listeners."""
        self._listeners: dict[LifecyclePhase, list[LifecycleListener]] = defaultdict(list)

    def listen(self, phase: LifecyclePhase, listener: LifecycleListener) -> None:
        """Append *listener* to the phase's listener list.

        Raises:
            LifecycleError: If *listener* is not callable or *phase* is not a
                ``LifecyclePhase``.
        """
        if not isinstance(phase, LifecyclePhase):
            raise LifecycleError(f"Unknown lifecycle phase: {phase!r}")
        if not callable(listener):
            raise LifecycleError(f"Listener for '{phase.value}' is not callable: {listener!r}")
        self._listeners[phase].append(listener)
        logger.debug(f"Lifecycle: registered listener for '{phase.value}'")

    def listeners(self, phase: LifecyclePhase) -> tuple[LifecycleListener, ...]:
        """Listeners registered for *phase*, in call order."""
        return tuple(self._listeners.get(phase, ()))

    async def dispatch(self, event: LifecycleEvent) -> None:
        """Run every listener registered for ``event.phase``.

        A failing listener is logged; the remaining listeners still run and
        the failure never reaches the caller.
        """
        for listener in self.listeners(event.phase):
            try:
                await listener(event)
            except Exception as exc:
                logger.error(
                    f"Lifecycle: listener {_listener_name(listener)} failed "
                    f"for '{event.event_type}': {exc}",
                    exc_info=exc,
                )


def _listener_name(listener: LifecycleListener) -> str:
    return getattr(listener, "__qualname__", None) or repr(listener)
