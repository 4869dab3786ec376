"""Per-task correlation context attached to every log record.

The context is a plain dict stored in a ``ContextVar`` so each asyncio task
(one debounced query, one artifact load) sees its own ids. Besides the trace
and span ids it can carry search fields such as ``query`` or
``content_root`` that ``JsonFormatter`` copies into the log entry.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any
from uuid import uuid4


trace_context: ContextVar[dict[str, Any] | None] = ContextVar("docs_search_trace_context", default=None)

# Search fields promoted into structured log entries when bound
CONTEXT_FIELDS = ("query", "content_root", "artifact")


def generate_trace_id() -> str:
    return uuid4().hex


def generate_span_id() -> str:
    return uuid4().hex[:16]


def get_trace_context() -> dict[str, Any]:
    """Return the current context, starting a fresh trace when none is bound."""
    ctx = trace_context.get()
    if not ctx or not ctx.get("trace_id"):
        ctx = {**(ctx or {}), "trace_id": generate_trace_id(), "span_id": generate_span_id()}
        trace_context.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str, **fields: Any) -> None:
    trace_context.set({"trace_id": trace_id, "span_id": span_id, **fields})


def update_span_id(span_id: str) -> None:
    """Point log records at the active span, keeping the trace and bound fields."""
    trace_context.set({**get_trace_context(), "span_id": span_id})


@contextmanager
def bind_context(**fields: Any) -> Iterator[dict[str, Any]]:
    """Bind search fields for the duration of the block, then restore the previous context."""
    token = trace_context.set({**get_trace_context(), **fields})
    try:
        yield trace_context.get() or {}
    finally:
        trace_context.reset(token)
