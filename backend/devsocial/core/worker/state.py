"""Worker-level state holders.

These objects live as long as the worker process. Handlers may put data in
them during an operation; ``StateReset`` empties them at the boundary.
"""

from typing import Any

from devsocial.core.protocols.worker_state import RequestBindings, ViewState

REQUEST_DATA_BINDING = "request.data"
"""Binding under which handlers stash request-scoped data."""


class SharedViewState(ViewState):
    """Values shared with every rendered response (template globals, page props)."""

    def __init__(self) -> None:
        self._shared: dict[str, Any] = {}

    def share(self, key: str, value: Any) -> None:
        self._shared[key] = value

    def shared(self) -> dict[str, Any]:
        return dict(self._shared)

    def flush_state(self) -> None:
        self._shared.clear()


class WorkerBindings(RequestBindings):
    """Named instances bound on the worker for the current operation."""

    def __init__(self) -> None:
        self._instances: dict[str, Any] = {}

    def bind(self, name: str, instance: Any) -> None:
        self._instances[name] = instance

    def bound(self, name: str) -> bool:
        return name in self._instances

    def resolve(self, name: str) -> Any:
        try:
            return self._instances[name]
        except KeyError:
            raise LookupError(f"Nothing bound under '{name}'") from None

    def forget_instance(self, name: str) -> None:
        self._instances.pop(name, None)
