"""SQLAlchemy implementations of the worker's ORM and connection resolvers."""

from sqlalchemy.ext.asyncio import async_scoped_session

from devsocial.core.protocols.worker_state import ConnectionResolver, OrmRegistry


class SqlAlchemyOrmRegistry(OrmRegistry):
    """Expunges every instance tracked by the operation's scoped session."""

    def __init__(self, scoped: async_scoped_session) -> None:
        self._scoped = scoped

    def clear(self) -> None:
        if self._scoped.registry.has():
            self._scoped().expunge_all()


class SqlAlchemyConnectionResolver(ConnectionResolver):
    """Closes the operation's scoped session and returns its connection to the pool."""

    def __init__(self, scoped: async_scoped_session) -> None:
        self._scoped = scoped

    async def purge(self) -> None:
        await self._scoped.remove()
