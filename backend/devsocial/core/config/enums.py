"""Configuration enums for type-safe settings.

These enums provide type safety and IDE autocomplete for configuration values.
They inherit from str to maintain JSON serialization compatibility.
"""

from enum import Enum


class GcStrategy(str, Enum):
    """Garbage-collection strategies for long-lived workers.

    Determines when a full collection runs after an operation finishes.
    """

    INTERVAL = "interval"
    PROBABILISTIC = "probabilistic"
    DISABLED = "disabled"


class Environment(str, Enum):
    """Deployment environments.

    Controls environment-specific behavior like log formatting and
    debug-only diagnostics.
    """

    LOCAL = "local"
    TEST = "test"
    DEV = "dev"
    PRD = "prd"


class SharedTableBackend(str, Enum):
    """Where shared tables live.

    ``redis`` is shared by every worker process on the host; ``memory`` is
    private to one process and meant for tests and single-process runs.
    """

    REDIS = "redis"
    MEMORY = "memory"
