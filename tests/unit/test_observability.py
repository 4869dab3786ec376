"""Unit tests for observability module."""

import json
import logging
from pathlib import Path
import sys

from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
import pytest

from docs_search.observability import (
    ARTIFACT_LOADS,
    SEARCH_LATENCY,
    SEARCH_QUERIES,
    JsonFormatter,
    bind_context,
    configure_logging,
    create_span,
    get_trace_context,
    init_metrics,
    init_tracing,
    metrics as metrics_module,
    set_trace_context,
    tracing as tracing_module,
    track_latency,
    write_metrics_textfile,
)
from docs_search.observability.context import update_span_id


def _record(msg: str, level: int = logging.INFO, name: str = "docs_search.search.engine") -> logging.LogRecord:
    return logging.LogRecord(name=name, level=level, pathname="engine.py", lineno=1, msg=msg, args=(), exc_info=None)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def span_exporter(monkeypatch):
    monkeypatch.setitem(tracing_module._tracer_holder, "tracer", None)
    monkeypatch.setitem(tracing_module._tracer_holder, "provider", None)
    exporter = InMemorySpanExporter()
    init_tracing("test-service", exporter=exporter)
    return exporter


@pytest.mark.unit
class TestJsonFormatter:
    """Tests for structured JSON logging."""

    def test_format_includes_trace_context(self):
        set_trace_context("ab" * 16, "cd" * 8)

        data = json.loads(JsonFormatter().format(_record("index ready")))

        assert data["message"] == "index ready"
        assert data["level"] == "INFO"
        assert data["trace_id"] == "ab" * 16
        assert data["span_id"] == "cd" * 8
        assert data["component"] == "engine"
        assert "timestamp" in data

    def test_format_includes_extra_fields(self):
        record = _record("query failed", level=logging.ERROR)
        record.query = "sched"
        record.artifact = Path("public/search-index.json")

        data = json.loads(JsonFormatter().format(record))

        assert data["query"] == "sched"
        assert data["artifact"] == "public/search-index.json"

    def test_format_truncates_long_values(self):
        record = _record("x" * 5000)
        record.content = "y" * 800

        data = json.loads(JsonFormatter().format(record))

        assert len(data["message"]) == JsonFormatter.MAX_MESSAGE_LEN + 3
        assert data["message"].endswith("...")
        assert data["content"] == "y" * 500 + "..."

    def test_format_includes_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord("test", logging.ERROR, "t.py", 1, "failed", (), sys.exc_info())

        data = json.loads(JsonFormatter().format(record))

        assert "RuntimeError: boom" in data["exception"]

    def test_json_default_handles_set_and_bytes(self):
        formatter = JsonFormatter()
        assert formatter._json_default({3, 1, 2}) == [1, 2, 3]
        assert formatter._json_default(b"ok") == "ok"
        assert formatter._json_default(ValueError("bad")) == "bad"

    def test_json_default_handles_unorderable_set(self):
        value = JsonFormatter()._json_default({1, "a"})
        assert isinstance(value, list)
        assert len(value) == 2


@pytest.mark.unit
class TestTraceContext:
    """Tests for trace context propagation."""

    def test_get_trace_context_generates_ids(self):
        set_trace_context("", "")
        ctx = get_trace_context()
        assert len(ctx["trace_id"]) == 32
        assert len(ctx["span_id"]) == 16

    def test_update_span_id_preserves_trace_id(self):
        set_trace_context("aa" * 16, "bb" * 8, query="node")
        update_span_id("cc" * 8)
        ctx = get_trace_context()
        assert ctx["trace_id"] == "aa" * 16
        assert ctx["span_id"] == "cc" * 8
        assert ctx["query"] == "node"

    def test_bind_context_restores_previous_fields(self):
        set_trace_context("aa" * 16, "bb" * 8)
        with bind_context(query="ipc") as ctx:
            assert ctx["query"] == "ipc"
            data = json.loads(JsonFormatter().format(_record("searching")))
            assert data["query"] == "ipc"
            assert data["trace_id"] == "aa" * 16
        assert "query" not in get_trace_context()


@pytest.mark.unit
class TestTracing:
    """Tests for OpenTelemetry tracing."""

    def test_init_tracing_returns_provider(self, monkeypatch):
        monkeypatch.setitem(tracing_module._tracer_holder, "tracer", None)
        monkeypatch.setitem(tracing_module._tracer_holder, "provider", None)
        provider = init_tracing("test-service")
        assert isinstance(provider, TracerProvider)
        assert tracing_module._tracer_holder["provider"] is provider
        assert provider.resource.attributes["service.name"] == "test-service"

    def test_create_span_records_attributes(self, span_exporter):
        with create_span("index.build", attributes={"content_root": "content/docs"}) as span:
            span.set_attribute("documents", 3)

        (finished,) = span_exporter.get_finished_spans()
        assert finished.name == "index.build"
        assert finished.attributes["content_root"] == "content/docs"
        assert finished.attributes["documents"] == 3

    def test_create_span_updates_trace_context(self, span_exporter):
        set_trace_context("ab" * 16, "cd" * 8)
        with create_span("artifact.load") as span:
            expected = format(span.get_span_context().span_id, "016x")
            assert get_trace_context()["span_id"] == expected

    def test_create_span_marks_errors(self, span_exporter):
        with pytest.raises(ValueError), create_span("artifact.load"):
            raise ValueError("bad artifact")

        (finished,) = span_exporter.get_finished_spans()
        assert finished.status.status_code is StatusCode.ERROR

    def test_create_span_binds_search_fields_for_logs(self, span_exporter):
        set_trace_context("ab" * 16, "cd" * 8)
        with create_span("index.build", attributes={"content_root": "content/docs", "strict": False}):
            data = json.loads(JsonFormatter().format(_record("scanning")))

        assert data["content_root"] == "content/docs"
        assert "strict" not in data
        assert "content_root" not in get_trace_context()
        assert get_trace_context()["span_id"] == "cd" * 8


@pytest.mark.unit
class TestMetrics:
    """Tests for Prometheus metrics bridged to OpenTelemetry."""

    def test_init_metrics_is_idempotent(self):
        provider = init_metrics("test-service")
        assert isinstance(provider, MeterProvider)
        assert init_metrics("other") is provider

    def test_write_metrics_textfile_exposes_search_series(self, tmp_path):
        SEARCH_QUERIES.labels(status="ok").inc()
        ARTIFACT_LOADS.labels(status="error").inc()
        target = tmp_path / "metrics" / "search.prom"

        write_metrics_textfile(target)

        output = target.read_text(encoding="utf-8")
        assert "search_queries_total" in output
        assert 'artifact_load_total{status="error"}' in output

    def test_track_latency_records_histogram(self):
        before = metrics_module._SEARCH_LATENCY_PROM._sum.get()
        with track_latency(SEARCH_LATENCY):
            pass
        assert metrics_module._SEARCH_LATENCY_PROM._sum.get() >= before

    def test_gauge_reports_deltas(self):
        gauge = metrics_module.INDEX_DOC_COUNT
        gauge.labels(stage="test").set(5)
        gauge.labels(stage="test").set(3)
        assert gauge._last_values[(("stage", "test"),)] == 3

    def test_metric_bridge_unknown_kind_raises(self):
        bad_metric = metrics_module.MetricBridge(
            metrics_module._SEARCH_QUERIES_PROM,
            otel_name="bad_metric",
            otel_description="bad",
            otel_kind="unknown",
        )
        with pytest.raises(ValueError, match="Unknown metric kind"):
            bad_metric.inc({"status": "ok"}, 1.0)


@pytest.mark.unit
class TestConfigureLogging:
    """Tests for logging configuration."""

    def test_configure_logging_sets_level(self, restore_root_logger):
        configure_logging(level="DEBUG")
        assert restore_root_logger.level == logging.DEBUG

    def test_configure_logging_json_formatter(self, restore_root_logger):
        configure_logging(level="INFO")
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)

    def test_configure_logging_non_json_formatter(self, restore_root_logger):
        configure_logging(level="INFO", json_output=False)
        formatter = restore_root_logger.handlers[0].formatter
        assert not isinstance(formatter, JsonFormatter)
        assert "%(asctime)s" in formatter._style._fmt

    def test_configure_logging_overrides_and_quiets_http(self, restore_root_logger):
        configure_logging(level="INFO", logger_levels={"docs_search.tests.override": "ERROR"})
        assert logging.getLogger("docs_search.tests.override").level == logging.ERROR
        assert logging.getLogger("httpx").level == logging.WARNING
