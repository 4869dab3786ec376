"""Observability module for OpenTelemetry-aligned tracing, metrics, and logging."""

from docs_search.observability.context import bind_context, get_trace_context, set_trace_context, trace_context
from docs_search.observability.logging import JsonFormatter, configure_logging
from docs_search.observability.metrics import (
    ARTIFACT_LOADS,
    INDEX_BUILD_ERRORS,
    INDEX_DOC_COUNT,
    SEARCH_LATENCY,
    SEARCH_QUERIES,
    init_metrics,
    track_latency,
    write_metrics_textfile,
)
from docs_search.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "ARTIFACT_LOADS",
    "INDEX_BUILD_ERRORS",
    "INDEX_DOC_COUNT",
    "SEARCH_LATENCY",
    "SEARCH_QUERIES",
    "JsonFormatter",
    "bind_context",
    "configure_logging",
    "create_span",
    "get_trace_context",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "set_trace_context",
    "trace_context",
    "track_latency",
    "write_metrics_textfile",
]
