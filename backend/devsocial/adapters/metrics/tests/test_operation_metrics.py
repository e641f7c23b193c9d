"""Unit tests for per-operation metrics adapters and the renderer."""

import sys

from prometheus_client import REGISTRY, CollectorRegistry, generate_latest

from devsocial.adapters.metrics import (
    FakeMetricsRenderer,
    FakeOperationMetrics,
    PrometheusMetricsRenderer,
    PrometheusOperationMetrics,
)
from devsocial.adapters.metrics.renderer import split_content_type


class TestSplitContentType:
    """Tests for the split_content_type helper."""

    def test_prometheus_content_type(self):
        media, charset = split_content_type("text/plain; version=0.0.4; charset=utf-8")
        assert media == "text/plain; version=0.0.4"
        assert charset == "utf-8"

    def test_missing_charset_defaults_to_utf8(self):
        media, charset = split_content_type("application/json")
        assert media == "application/json"
        assert charset == "utf-8"

    def test_charset_key_is_case_insensitive(self):
        _, charset = split_content_type("text/plain; Charset=UTF-8")
        assert charset == "UTF-8"


class TestPrometheusOperationMetrics:
    """Tests for the Prometheus adapter."""

    def test_registry_is_separate_from_default(self):
        adapter = PrometheusOperationMetrics()
        assert adapter._registry is not REGISTRY

    def test_observe_operation_records_duration_per_kind(self):
        registry = CollectorRegistry()
        adapter = PrometheusOperationMetrics(registry=registry)
        adapter.observe_operation(kind="request", duration=0.2, memory_delta=1024)
        adapter.observe_operation(kind="task", duration=1.5, memory_delta=-4096)

        output = generate_latest(registry).decode()
        assert 'devsocial_operation_duration_seconds_count{kind="request"} 1.0' in output
        assert 'devsocial_operation_duration_seconds_count{kind="task"} 1.0' in output
        assert 'devsocial_operation_memory_delta_bytes_sum{kind="task"} 0.0' in output

    def test_observe_queries(self):
        registry = CollectorRegistry()
        adapter = PrometheusOperationMetrics(registry=registry)
        adapter.observe_queries(kind="request", count=7)

        output = generate_latest(registry).decode()
        assert 'devsocial_operation_queries_sum{kind="request"} 7.0' in output

    def test_unlimited_memory_limit_is_exported_as_zero(self):
        registry = CollectorRegistry()
        adapter = PrometheusOperationMetrics(registry=registry)
        adapter.set_memory_usage(current=100, limit=sys.maxsize)

        output = generate_latest(registry).decode()
        assert "devsocial_worker_memory_bytes 100.0" in output
        assert "devsocial_worker_memory_limit_bytes 0.0" in output


class TestFakeOperationMetrics:
    """Tests for the FakeOperationMetrics test helper."""

    def test_clear_resets_all_state(self):
        fake = FakeOperationMetrics()
        fake.observe_operation(kind="request", duration=0.1, memory_delta=10)
        fake.observe_queries(kind="request", count=3)
        fake.set_memory_usage(current=1, limit=2)

        fake.clear()

        assert fake.operations == []
        assert fake.queries == []
        assert fake.memory_usage is None


class TestPrometheusMetricsRenderer:
    """Tests for the renderer."""

    def test_renders_every_registry(self):
        first, second = CollectorRegistry(), CollectorRegistry()
        PrometheusOperationMetrics(registry=first).observe_queries(kind="request", count=1)
        PrometheusOperationMetrics(registry=second).observe_queries(kind="task", count=2)

        output = PrometheusMetricsRenderer(first, second).generate().decode()

        assert 'devsocial_operation_queries_sum{kind="request"} 1.0' in output
        assert 'devsocial_operation_queries_sum{kind="task"} 2.0' in output

    def test_content_type_has_no_charset(self):
        renderer = PrometheusMetricsRenderer(CollectorRegistry())
        assert "charset" not in renderer.content_type
        assert renderer.charset == "utf-8"

    def test_fake_counts_calls(self):
        fake = FakeMetricsRenderer()
        fake.generate()
        fake.generate()
        assert fake.generate_calls == 2
