"""Configuration module for the devsocial backend.

Provides centralized configuration management with type-safe enums.

Usage:
    from devsocial.core.config import settings, GcStrategy, Environment

    # Access settings
    if settings.GC_STRATEGY == GcStrategy.INTERVAL:
        ...

    # Use enums for type safety
    if settings.ENVIRONMENT == Environment.PRD:
        ...
"""

from devsocial.core.config.enums import Environment, GcStrategy, SharedTableBackend
from devsocial.core.config.settings import Settings

__all__ = [
    "Settings",
    "GcStrategy",
    "Environment",
    "SharedTableBackend",
    "settings",
]

# Singleton settings instance
settings = Settings()
