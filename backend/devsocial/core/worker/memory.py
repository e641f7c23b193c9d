"""Memory readings and memory-limit parsing for worker processes."""

import logging
import re
import resource
import sys
from typing import Union

import psutil

from devsocial.core.protocols.metrics import MemoryProbe

logger = logging.getLogger(__name__)

UNLIMITED = sys.maxsize
"""Ceiling used when the worker has no memory limit."""

_UNLIMITED_SPELLINGS = frozenset({"", "-1", "unlimited", "none"})
_LIMIT_PATTERN = re.compile(r"^(\d+)([kmg])?$", re.IGNORECASE)
_UNIT_MULTIPLIERS = {
    None: 1,
    "k": 1024,
    "m": 1024 * 1024,
    "g": 1024 * 1024 * 1024,
}
_BYTE_UNITS = ("B", "KB", "MB", "GB")


def parse_memory_limit(value: Union[str, int, None]) -> int:
    """Convert a memory limit such as ``"512M"`` into bytes.

    Accepts ``<integer>`` or ``<integer><k|m|g>`` in any case. ``-1``,
    ``"unlimited"``, ``None`` and the empty string mean no limit and return
    ``UNLIMITED``. Anything unparseable, and zero, also degrade to
    ``UNLIMITED`` so a bad setting can never make every request look like
    it is over the limit.
    """
    if value is None:
        return UNLIMITED
    if isinstance(value, int):
        return value if value > 0 else UNLIMITED

    text = str(value).strip()
    if text.lower() in _UNLIMITED_SPELLINGS:
        return UNLIMITED

    match = _LIMIT_PATTERN.match(text)
    if match is None:
        logger.warning(f"Unparseable memory limit {value!r}, treating as unlimited")
        return UNLIMITED

    amount = int(match.group(1))
    unit = match.group(2).lower() if match.group(2) else None
    parsed = amount * _UNIT_MULTIPLIERS[unit]
    if parsed <= 0:
        logger.warning(f"Non-positive memory limit {value!r}, treating as unlimited")
        return UNLIMITED
    return parsed


def format_bytes(num_bytes: int) -> str:
    """Format a byte count with a binary unit, e.g. ``"1.5 MB"``."""
    size = float(max(num_bytes, 0))
    unit = 0
    while size >= 1024 and unit < len(_BYTE_UNITS) - 1:
        size /= 1024
        unit += 1
    return f"{round(size, 2)} {_BYTE_UNITS[unit]}"


def bytes_to_mb(num_bytes: int) -> float:
    return round(num_bytes / 1024 / 1024, 2)


class ProcessMemoryProbe(MemoryProbe):
    """Reads resident memory of the running process."""

    def __init__(self) -> None:
        self._process = psutil.Process()

    def current(self) -> int:
        return self._process.memory_info().rss

    def peak(self) -> int:
        # ru_maxrss is kilobytes on Linux and bytes on macOS.
        peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
        if sys.platform != "darwin":
            peak *= 1024
        return max(peak, self.current())


class FakeMemoryProbe(MemoryProbe):
    """In-memory stand-in returning configurable readings."""

    def __init__(self, current: int = 64 * 1024 * 1024, peak: int | None = None) -> None:
        self.current_bytes = current
        self.peak_bytes = peak if peak is not None else current
        self.reads = 0

    def current(self) -> int:
        self.reads += 1
        return self.current_bytes

    def peak(self) -> int:
        return max(self.peak_bytes, self.current_bytes)
