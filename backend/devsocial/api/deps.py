"""Dependencies that are used in the API endpoints."""

from typing import get_type_hints

from fastapi import Depends, Request

from devsocial.core import container as container_mod
from devsocial.core.container import Container
from devsocial.core.context import OperationContext
from devsocial.core.logging import ContextualLogger


def get_container() -> Container:
    """Get the DI container. Initialized at startup."""
    c = container_mod.container
    if c is None:
        raise RuntimeError("Container not initialized. Call initialize_container() first.")
    return c


def get_operation(request: Request) -> OperationContext:
    """The operation context bound by the request isolation middleware."""
    ctx = getattr(request.state, "operation", None)
    if ctx is None:
        raise RuntimeError("No operation context on request; is request isolation installed?")
    return ctx


def get_logger(ctx: OperationContext = Depends(get_operation)) -> ContextualLogger:
    """Logger carrying the current operation's dimensions."""
    return ctx.logger


# ---------------------------------------------------------------------------
# Protocol Injection
# ---------------------------------------------------------------------------

# Cache of protocol_type → Container field name, built once at first call.
_INJECT_CACHE: dict[type, str] = {}


def _resolve_field_name(protocol_type: type) -> str:
    """Find which Container field matches the given protocol type.

    Uses get_type_hints() to introspect the Container dataclass. Result is
    cached so the lookup happens at most once per protocol type. When two
    fields share a type, the first one declared wins.
    """
    if not _INJECT_CACHE:
        for name, hint in get_type_hints(Container).items():
            _INJECT_CACHE.setdefault(hint, name)

    field_name = _INJECT_CACHE.get(protocol_type)
    if field_name is None:
        available = list(_INJECT_CACHE.values())
        raise TypeError(
            f"No binding for {protocol_type.__name__} in Container. Available fields: {available}"
        )
    return field_name


def Inject(protocol_type: type):  # noqa: N802 - uppercase to match FastAPI convention
    """Resolve a protocol implementation from the DI container.

    Works like ``Depends()`` but looks up the implementation by protocol type
    instead of requiring the caller to know about the Container internals.

    Usage in FastAPI endpoints::

        from devsocial.api.deps import Inject
        from devsocial.core.protocols import HealthServiceProtocol


        @router.get("/ready")
        async def ready(health: HealthServiceProtocol = Inject(HealthServiceProtocol)):
            ...
    """
    field_name = _resolve_field_name(protocol_type)

    def _resolve(c: Container = Depends(get_container)):
        return getattr(c, field_name)

    return Depends(_resolve)
