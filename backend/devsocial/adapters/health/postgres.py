"""Postgres health probe adapter."""

import time

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from devsocial.core.health.protocols import HealthProbe
from devsocial.schemas.health import CheckStatus, DependencyCheck


class PostgresHealthProbe(HealthProbe):
    """Round-trips ``SELECT 1`` through a dedicated (small-pool) engine.

    Using its own engine keeps the probe answering when the request pool is
    exhausted by application traffic.
    """

    def __init__(self, engine: AsyncEngine, name: str = "postgres") -> None:
        self._engine = engine
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    async def check(self) -> DependencyCheck:
        started = time.perf_counter()
        async with self._engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        elapsed_ms = (time.perf_counter() - started) * 1000
        return DependencyCheck(status=CheckStatus.up, latency_ms=round(elapsed_ms, 2))
