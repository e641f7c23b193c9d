"""Protocols for worker-level state that outlives a single operation.

A long-lived worker reuses the same memory for many operations. These are
the pieces of that memory which must be reset between operations.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ViewState(Protocol):
    """Data shared with every rendered response (e.g. template globals)."""

    def share(self, key: str, value: Any) -> None: ...

    def shared(self) -> dict[str, Any]: ...

    def flush_state(self) -> None:
        """Drop everything shared so far."""
        ...


@runtime_checkable
class RequestBindings(Protocol):
    """Named request-scoped singletons bound on the worker."""

    def bind(self, name: str, instance: Any) -> None: ...

    def bound(self, name: str) -> bool: ...

    def resolve(self, name: str) -> Any: ...

    def forget_instance(self, name: str) -> None: ...


@runtime_checkable
class OrmRegistry(Protocol):
    """ORM bookkeeping (identity maps, loaded instances) kept by the worker."""

    def clear(self) -> None:
        """Drop every tracked instance."""
        ...


@runtime_checkable
class ConnectionResolver(Protocol):
    """Resolves datastore sessions/connections for the current operation."""

    async def purge(self) -> None:
        """Release every resolver instance bound during the operation."""
        ...
