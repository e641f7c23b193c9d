"""Health probe adapters for infrastructure dependencies."""

from devsocial.adapters.health.postgres import PostgresHealthProbe
from devsocial.adapters.health.queue import QueueBacklogProbe
from devsocial.adapters.health.redis import RedisHealthProbe

__all__ = ["PostgresHealthProbe", "QueueBacklogProbe", "RedisHealthProbe"]
