"""When to run a full garbage collection after an operation.

A full ``gc.collect()`` is expensive, so it never runs after every
operation. The policy is one of a closed set of variants, picked once from
settings by ``create_gc_policy``.
"""

import random
from typing import Protocol, runtime_checkable

from devsocial.core.config import GcStrategy, Settings


@runtime_checkable
class GcPolicy(Protocol):
    """Decides whether the operation with the given sequence number triggers GC."""

    def should_collect(self, sequence: int) -> bool:
        """``sequence`` is the 1-based count of operations handled by this worker."""
        ...


class IntervalGcPolicy(GcPolicy):
    """Collect on every *interval*-th operation (deterministic)."""

    def __init__(self, interval: int) -> None:
        if interval < 1:
            raise ValueError("GC interval must be a positive integer")
        self.interval = interval

    def should_collect(self, sequence: int) -> bool:
        return sequence > 0 and sequence % self.interval == 0

    def __repr__(self) -> str:
        return f"IntervalGcPolicy(interval={self.interval})"


class ProbabilisticGcPolicy(GcPolicy):
    """Collect with a fixed probability per operation."""

    def __init__(self, rate: float, rng: random.Random | None = None) -> None:
        if not 0.0 <= rate <= 1.0:
            raise ValueError("GC probability must be between 0 and 1")
        self.rate = rate
        self._rng = rng or random.Random()

    def should_collect(self, sequence: int) -> bool:
        return self._rng.random() < self.rate

    def __repr__(self) -> str:
        return f"ProbabilisticGcPolicy(rate={self.rate})"


class DisabledGcPolicy(GcPolicy):
    """Never collect; leave it to the interpreter's generational GC."""

    def should_collect(self, sequence: int) -> bool:
        return False

    def __repr__(self) -> str:
        return "DisabledGcPolicy()"


def create_gc_policy(settings: Settings) -> GcPolicy:
    """Pick the GC policy described by *settings*."""
    if not settings.GC_ENABLED or settings.GC_STRATEGY == GcStrategy.DISABLED:
        return DisabledGcPolicy()
    if settings.GC_STRATEGY == GcStrategy.INTERVAL:
        return IntervalGcPolicy(settings.GC_INTERVAL)
    return ProbabilisticGcPolicy(settings.GC_PROBABILITY)
