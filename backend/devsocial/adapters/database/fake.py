"""Fakes for the worker-state protocols backed by SQLAlchemy in production."""

from devsocial.core.protocols.worker_state import ConnectionResolver, OrmRegistry


class FakeOrmRegistry(OrmRegistry):
    """Counts ``clear`` calls; optionally raises to exercise error isolation."""

    def __init__(self, error: Exception | None = None) -> None:
        self.clear_calls = 0
        self.error = error

    def clear(self) -> None:
        self.clear_calls += 1
        if self.error is not None:
            raise self.error


class FakeConnectionResolver(ConnectionResolver):
    """Counts ``purge`` calls."""

    def __init__(self) -> None:
        self.purge_calls = 0

    async def purge(self) -> None:
        self.purge_calls += 1
