"""Unit tests for memory-limit parsing and formatting."""

import sys

import pytest

from devsocial.core.worker.memory import (
    UNLIMITED,
    FakeMemoryProbe,
    format_bytes,
    parse_memory_limit,
)


class TestParseMemoryLimit:
    """``<int>[k|m|g]`` in either case, bare integers and the unlimited sentinels."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("512", 512),
            ("64k", 64 * 1024),
            ("64K", 64 * 1024),
            ("512m", 512 * 1024 * 1024),
            ("512M", 512 * 1024 * 1024),
            ("2g", 2 * 1024**3),
            ("2G", 2 * 1024**3),
            (" 256M ", 256 * 1024 * 1024),
            (1024, 1024),
        ],
    )
    def test_parses_sizes(self, value, expected):
        assert parse_memory_limit(value) == expected

    @pytest.mark.parametrize("value", [-1, "-1", None, "", "unlimited", "UNLIMITED", "none"])
    def test_unlimited_sentinels(self, value):
        assert parse_memory_limit(value) == sys.maxsize

    @pytest.mark.parametrize("value", ["lots", "12T", "1.5G", "M512", 0, "0", "0M"])
    def test_garbage_degrades_to_unlimited(self, value):
        assert parse_memory_limit(value) == UNLIMITED


class TestFormatBytes:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (0, "0.0 B"),
            (512, "512.0 B"),
            (1536, "1.5 KB"),
            (50 * 1024 * 1024, "50.0 MB"),
            (3 * 1024**3, "3.0 GB"),
            (-2048, "0.0 B"),
        ],
    )
    def test_units(self, value, expected):
        assert format_bytes(value) == expected


class TestFakeMemoryProbe:
    def test_peak_never_below_current(self):
        probe = FakeMemoryProbe(current=10, peak=5)
        assert probe.peak() == 10

    def test_counts_reads(self):
        probe = FakeMemoryProbe()
        probe.current()
        probe.current()
        assert probe.reads == 2
