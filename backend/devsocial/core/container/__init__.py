"""Dependency Injection Container Module.

Usage:
------
    # Initialize at startup (call once from main.py or task_worker.py)
    from devsocial.core.container import initialize_container
    from devsocial.core.config import settings
    initialize_container(settings)

    # Import the global container after initialization
    from devsocial.core import container as container_mod
    hooks = container_mod.container.hooks

    # In tests (construct directly with fakes, don't use global)
    from devsocial.core.container import Container
    test_container = Container(health=FakeHealthService(), ...)

Module structure:
-----------------
    container/
    ├── __init__.py      # This file - exports public API
    ├── container.py     # Container dataclass (serves)
    └── factory.py       # create_container() (builds)
"""

from typing import TYPE_CHECKING

from devsocial.core.container.container import Container
from devsocial.core.container.factory import create_container

if TYPE_CHECKING:
    from devsocial.core.config import Settings

__all__ = ["Container", "create_container", "container", "initialize_container"]


container: Container | None = None
"""Global container instance.

Initialized via ``initialize_container()`` at application startup. Import it
only from entrypoints and api/deps.py; everything else receives its
dependencies as arguments.
"""


def initialize_container(settings: "Settings") -> Container:
    """Initialize the global container. Call once at startup.

    Raises:
        RuntimeError: If called more than once (container already initialized)
    """
    global container

    if container is not None:
        raise RuntimeError(
            "Container already initialized. "
            "initialize_container() should only be called once at startup."
        )

    container = create_container(settings)
    return container


def reset_container() -> None:
    """Reset the global container to None. For testing only."""
    global container
    container = None
