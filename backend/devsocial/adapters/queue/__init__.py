"""Job queue adapters."""

from devsocial.adapters.queue.fake import FakeJobQueue
from devsocial.adapters.queue.redis import RedisJobQueue

__all__ = ["FakeJobQueue", "RedisJobQueue"]
