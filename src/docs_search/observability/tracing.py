"""OpenTelemetry spans around index builds, artifact loads and queries."""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.trace import SpanKind, Status, StatusCode

from docs_search import __version__
from docs_search.observability.context import CONTEXT_FIELDS, bind_context, update_span_id


if TYPE_CHECKING:
    from collections.abc import Generator

    from opentelemetry.sdk.trace.export import SpanExporter
    from opentelemetry.trace import Span, Tracer

logger = logging.getLogger(__name__)

_tracer_holder: dict[str, Any] = {"tracer": None, "provider": None}


def init_tracing(
    service_name: str = "docs-search",
    resource_attributes: dict[str, str] | None = None,
    *,
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """Install a tracer provider for the search tools.

    Spans are exported synchronously to ``exporter`` when one is given; the
    command-line tools pass a console exporter for ``--trace`` so build and
    load timings can be read without a collector.
    """
    attributes = {"service.name": service_name, "service.version": __version__}
    if resource_attributes:
        attributes.update(resource_attributes)
    provider = TracerProvider(resource=Resource.create(attributes))
    if exporter is not None:
        provider.add_span_processor(SimpleSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    # The global provider can only be set once per process; keep our own handle
    _tracer_holder["provider"] = provider
    _tracer_holder["tracer"] = provider.get_tracer(__name__)
    logger.debug("Tracing initialized for service: %s", service_name)
    return provider


def get_tracer() -> Tracer:
    if _tracer_holder["tracer"] is None:
        _tracer_holder["tracer"] = trace.get_tracer(__name__)
    return _tracer_holder["tracer"]


@contextmanager
def create_span(
    name: str,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: dict[str, Any] | None = None,
) -> Generator[Span, None, None]:
    """Start a span and bind its search attributes into the log context.

    Log records emitted inside the block carry the span id and any of
    ``query``/``content_root``/``artifact`` passed as attributes; both are
    restored when the block exits.
    """
    attributes = attributes or {}
    log_fields = {key: value for key, value in attributes.items() if key in CONTEXT_FIELDS}
    with get_tracer().start_as_current_span(name, kind=kind, attributes=attributes) as span, bind_context(
        **log_fields
    ):
        update_span_id(format(span.get_span_context().span_id, "016x"))
        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            raise
