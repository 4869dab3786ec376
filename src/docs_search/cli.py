"""Command-line entry points for building and querying the search artifact.

``build-search-index`` runs at site-build time and needs no arguments: the
content directory and output path come from settings (``DOCS_SEARCH_*``
environment variables or ``.env``). ``search-docs`` loads an artifact through
the query engine and prints ranked results, which is handy for checking
relevance without a browser.
"""

# ruff: noqa: T201  # CLI intentionally prints operator feedback

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from pathlib import Path
import sys
import textwrap
from typing import Any

from opentelemetry.sdk.trace.export import ConsoleSpanExporter
import orjson
from pydantic import ValidationError

from docs_search.config import Settings
from docs_search.observability.logging import configure_logging
from docs_search.observability.metrics import write_metrics_textfile
from docs_search.observability.tracing import init_tracing
from docs_search.search.engine import EngineState, QueryEngine, SearchOptions, loader_for_location
from docs_search.search.indexer import (
    ContentRootError,
    DocumentLoadError,
    IndexBuildContext,
    IndexBuildResult,
    SearchIndexBuilder,
)


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="build-search-index",
        description="Build the static search index for the documentation site",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent(
            """
            Examples:
              build-search-index
              build-search-index --content-dir content/docs --output public/search-index.json
              build-search-index --strict --log-level debug
              build-search-index --trace --metrics-file metrics/search_index.prom
            """
        ).strip(),
    )
    parser.add_argument("--content-dir", type=Path, help="Content root to scan (default: settings.content_dir)")
    parser.add_argument("--output", type=Path, help="Artifact path to write (default: settings.output_file)")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Abort the build when any single content file cannot be read",
    )
    parser.add_argument("--log-level", help="Override the configured log level")
    parser.add_argument("--metrics-file", type=Path, help="Write Prometheus metrics to this file after the build")
    parser.add_argument("--trace", action="store_true", help="Print OpenTelemetry spans to stderr")
    return parser


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_query_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="search-docs",
        description="Query a built search artifact",
    )
    parser.add_argument("query", help="Free-text query")
    parser.add_argument("--artifact", help="Artifact path or URL (default: resolved from settings)")
    parser.add_argument("--limit", type=_positive_int, default=None, help="Maximum results to print")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--log-level", help="Override the configured log level")
    parser.add_argument("--trace", action="store_true", help="Print OpenTelemetry spans to stderr")
    return parser


def _load_settings(**overrides: Any) -> Settings:
    return Settings(**{key: value for key, value in overrides.items() if value is not None})


def _configure_observability(settings: Settings, *, log_level: str | None, trace: bool) -> None:
    configure_logging(log_level or settings.log_level, json_output=settings.log_json)
    if trace or settings.trace_spans:
        init_tracing(exporter=ConsoleSpanExporter(out=sys.stderr))


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for ``build-search-index``."""

    args = build_argument_parser().parse_args(argv)
    try:
        settings = _load_settings(
            content_dir=args.content_dir,
            output_file=args.output,
            metrics_file=args.metrics_file,
        )
    except ValidationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1
    _configure_observability(settings, log_level=args.log_level, trace=args.trace)

    print("Building search index...")
    builder = SearchIndexBuilder(IndexBuildContext.from_settings(settings, strict=args.strict))
    try:
        result = builder.build()
    except ContentRootError as exc:
        print(f"Error reading docs: {exc}", file=sys.stderr)
        return 1
    except DocumentLoadError as exc:
        print(f"Build aborted: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Unable to write search index: {exc}", file=sys.stderr)
        return 1

    _print_build_result(result)
    if settings.metrics_file is not None:
        write_metrics_textfile(settings.metrics_file)
        print(f"  - Metrics: {settings.metrics_file}")
    return 0


def _print_build_result(result: IndexBuildResult) -> None:
    print("Search index built successfully!")
    print(f"  - Total documents: {result.documents_indexed}")
    print(f"  - Output: {result.output_path}")
    print(f"  - Size: {result.artifact_bytes / 1024:.2f} KB")
    if result.errors:
        preview = list(result.errors[:3])
        for entry in preview:
            print(f"  warning: {entry}")
        remaining = len(result.errors) - len(preview)
        if remaining > 0:
            print(f"  ... {remaining} more warning(s)")


def query_main(argv: Sequence[str] | None = None) -> int:
    """Entry point for ``search-docs``."""

    args = build_query_parser().parse_args(argv)
    try:
        settings = _load_settings()
    except ValidationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1
    _configure_observability(settings, log_level=args.log_level, trace=args.trace)

    location = args.artifact or settings.resolve_artifact_location()
    engine = QueryEngine(
        loader_for_location(location, timeout=settings.fetch_timeout),
        options=SearchOptions.from_settings(settings),
    )
    return asyncio.run(_run_query(engine, args.query, limit=args.limit, as_json=args.json))


async def _run_query(engine: QueryEngine, query: str, *, limit: int | None, as_json: bool) -> int:
    state = await engine.open()
    if state is EngineState.ERROR:
        print(f"Search unavailable: {engine.error}", file=sys.stderr)
        return 1

    results = await engine.search(query, limit=limit)
    if as_json:
        payload = [result.model_dump() for result in results]
        print(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode("utf-8"))
        return 0

    if not results:
        print(f'No results found for "{query}"')
        return 0

    for position, result in enumerate(results, start=1):
        print(f"{position:>2}. [{result.score:>2}] {result.highlights.title}  {result.slug}  ({result.category_label})")
        if result.highlights.content:
            print(f"      {result.highlights.content}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
