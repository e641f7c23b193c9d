"""Fixed-window rate limiting on the ``rate_limits`` shared table."""

import time
from dataclasses import dataclass
from typing import Callable

from devsocial.core.protocols.shared_table import SharedTable


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of counting one request against a client's window."""

    limit: int
    remaining: int
    retry_after: float
    allowed: bool


class RateLimiter:
    """Count requests per key in fixed windows.

    Windows are aligned to multiples of ``window_seconds`` since the epoch
    and every window has its own row (``<key>:<window start>``), so a hit is
    a single atomic increment and workers never race to reset a window. The
    row also records the epoch second at which its window resets. A row
    evicted from a full table simply starts counting again.
    """

    def __init__(
        self,
        table: SharedTable,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if limit < 1:
            raise ValueError("Rate limit must be a positive integer")
        if window_seconds < 1:
            raise ValueError("Rate limit window must be a positive integer")
        self._table = table
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock

    async def hit(self, key: str) -> RateLimitResult:
        """Count one request for *key* and report whether it is allowed."""
        now = self._clock()
        window_start = int(now) - int(now) % self.window_seconds
        reset_time = window_start + self.window_seconds

        count = await self._table.incr(
            self._row_key(key, window_start), "requests", initial={"reset_time": reset_time}
        )
        if count == 1:
            await self._table.delete(self._row_key(key, window_start - self.window_seconds))

        return RateLimitResult(
            limit=self.limit,
            remaining=max(self.limit - count, 0),
            retry_after=max(reset_time - now, 0.0),
            allowed=count <= self.limit,
        )

    @staticmethod
    def _row_key(key: str, window_start: int) -> str:
        return f"{key}:{window_start}"
