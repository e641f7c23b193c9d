"""SQLAlchemy adapters: query counting and per-operation session cleanup."""

from devsocial.adapters.database.orm import SqlAlchemyConnectionResolver, SqlAlchemyOrmRegistry
from devsocial.adapters.database.query_log import install_query_logging

__all__ = ["SqlAlchemyConnectionResolver", "SqlAlchemyOrmRegistry", "install_query_logging"]
