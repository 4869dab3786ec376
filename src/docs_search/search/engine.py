"""Query engine: lazy artifact loading, ranked search and highlighting.

The engine moves through ``UNINITIALIZED -> LOADING -> READY | ERROR``. Loading
starts on the first ``open()`` rather than at construction, and the index
built from the artifact is reused for every later query. A failed load stays
in ``ERROR`` until the caller explicitly asks for ``retry()``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import anyio
import httpx
import orjson

from docs_search.observability.context import bind_context
from docs_search.observability.metrics import (
    ARTIFACT_LOADS,
    INDEX_DOC_COUNT,
    SEARCH_LATENCY,
    SEARCH_QUERIES,
    track_latency,
)
from docs_search.observability.tracing import create_span
from docs_search.search.highlight import DEFAULT_HIGHLIGHT_TEMPLATE, content_snippet, highlight_text
from docs_search.search.index import DocumentIndex
from docs_search.search.models import Highlights, SearchArtifact, SearchResult
from docs_search.search.ranking import DEFAULT_FIELD_WEIGHTS, RankedDocument, rank_field_results


if TYPE_CHECKING:
    from docs_search.config import Settings


logger = logging.getLogger(__name__)

ArtifactLoader = Callable[[], Awaitable[bytes]]


class EngineState(str, Enum):
    """Lifecycle of the query engine within one session."""

    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class ArtifactLoadError(RuntimeError):
    """Raised when the search artifact cannot be fetched or parsed."""


class FileArtifactLoader:
    """Read the artifact from the local filesystem."""

    def __init__(self, path: Path) -> None:
        self.path = path

    @property
    def location(self) -> str:
        return str(self.path)

    async def __call__(self) -> bytes:
        try:
            return await anyio.Path(self.path).read_bytes()
        except OSError as exc:
            raise ArtifactLoadError(f"Unable to read search artifact {self.path}: {exc}") from exc


class HttpArtifactLoader:
    """Fetch the artifact over HTTP(S)."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._client_factory = client_factory or (lambda: httpx.AsyncClient(timeout=self.timeout))

    @property
    def location(self) -> str:
        return self.url

    async def __call__(self) -> bytes:
        try:
            async with self._client_factory() as client:
                response = await client.get(self.url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as exc:
            raise ArtifactLoadError(f"Unable to fetch search artifact {self.url}: {exc}") from exc


def loader_for_location(location: str, *, timeout: float = 10.0) -> ArtifactLoader:
    """Return an HTTP loader for URLs and a file loader for everything else."""

    if location.startswith(("http://", "https://")):
        return HttpArtifactLoader(location, timeout=timeout)
    return FileArtifactLoader(Path(location))


@dataclass(frozen=True)
class SearchOptions:
    """Query-time limits and presentation settings."""

    field_search_limit: int = 15
    result_limit: int = 10
    snippet_length: int = 150
    snippet_left_context: int = 40
    highlight_template: str = DEFAULT_HIGHLIGHT_TEMPLATE
    field_weights: Mapping[str, int] = field(default_factory=lambda: DEFAULT_FIELD_WEIGHTS)

    @classmethod
    def from_settings(cls, settings: Settings) -> SearchOptions:
        return cls(
            field_search_limit=settings.field_search_limit,
            result_limit=settings.result_limit,
            snippet_length=settings.snippet_length,
            snippet_left_context=settings.snippet_left_context,
            highlight_template=settings.highlight_template,
        )


class QueryEngine:
    """Owns the loaded document index for one browsing session."""

    def __init__(self, loader: ArtifactLoader, *, options: SearchOptions | None = None) -> None:
        self._loader = loader
        self.options = options or SearchOptions()
        self._state = EngineState.UNINITIALIZED
        self._index: DocumentIndex | None = None
        self._error: str | None = None
        self._load_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> QueryEngine:
        loader = loader_for_location(settings.resolve_artifact_location(), timeout=settings.fetch_timeout)
        return cls(loader, options=SearchOptions.from_settings(settings))

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def document_count(self) -> int:
        return len(self._index) if self._index is not None else 0

    async def open(self) -> EngineState:
        """Load the artifact on first use; later calls return immediately.

        Concurrent callers during ``LOADING`` wait for the same load.
        """

        if self._state in (EngineState.READY, EngineState.ERROR):
            return self._state

        async with self._load_lock:
            if self._state is EngineState.UNINITIALIZED:
                await self._load()
        return self._state

    async def retry(self) -> EngineState:
        """Attempt one more load after a failure."""

        if self._state is EngineState.ERROR:
            logger.info("Retrying search artifact load")
            self._state = EngineState.UNINITIALIZED
            self._error = None
        return await self.open()

    async def search(self, query: str, *, limit: int | None = None) -> list[SearchResult]:
        """Search once the index is ready, waiting for an in-flight load."""

        if not query.strip():
            return []
        if self._state is EngineState.LOADING:
            await self.open()
        return self.run_query(query, limit=limit)

    def run_query(self, query: str, *, limit: int | None = None) -> list[SearchResult]:
        """Execute a query synchronously against the loaded index.

        Returns an empty list for blank queries, before the index is ready,
        and when the search itself fails. A ``limit`` below one is rejected
        with ``ValueError``.
        """

        if limit is not None and limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        if not query.strip() or self._index is None:
            return []

        try:
            with bind_context(query=query), track_latency(SEARCH_LATENCY):
                field_results = self._index.search(query, limit=self.options.field_search_limit, enrich=True)
                ranked = rank_field_results(
                    field_results,
                    self.options.field_weights,
                    limit=self.options.result_limit if limit is None else limit,
                )
                results = [self._build_result(ranked_doc, query) for ranked_doc in ranked]
        except Exception:
            logger.exception("Search failed for query %r", query)
            SEARCH_QUERIES.labels(status="error").inc()
            return []

        SEARCH_QUERIES.labels(status="ok").inc()
        logger.debug("Query %r matched %d documents", query, len(results))
        return results

    # --- internal helpers -------------------------------------------------

    async def _load(self) -> None:
        self._state = EngineState.LOADING
        try:
            location = getattr(self._loader, "location", repr(self._loader))
            with create_span("artifact.load", attributes={"artifact": location}) as span:
                payload = await self._loader()
                artifact = SearchArtifact.model_validate(orjson.loads(payload))
                index = DocumentIndex.from_documents(artifact.docs)
                span.set_attribute("documents", len(index))
        except (ArtifactLoadError, ValueError) as exc:
            self._fail(str(exc))
            logger.error("Failed to load search index: %s", exc)
            return
        except Exception as exc:
            self._fail(str(exc) or type(exc).__name__)
            logger.exception("Unexpected error while loading search index")
            return
        except BaseException:
            # Cancelled mid-load: the next open() starts over
            self._state = EngineState.UNINITIALIZED
            raise

        self._index = index
        self._state = EngineState.READY
        ARTIFACT_LOADS.labels(status="ok").inc()
        INDEX_DOC_COUNT.labels(stage="loaded").set(len(index))
        logger.info("Search index ready with %d documents (artifact generated %s)", len(index), artifact.generated)

    def _fail(self, message: str) -> None:
        self._state = EngineState.ERROR
        self._error = message
        ARTIFACT_LOADS.labels(status="error").inc()

    def _build_result(self, ranked: RankedDocument, query: str) -> SearchResult:
        doc = ranked.doc
        template = self.options.highlight_template
        snippet = content_snippet(
            doc.content,
            query,
            max_length=self.options.snippet_length,
            left_context=self.options.snippet_left_context,
        )
        return SearchResult(
            **doc.model_dump(),
            score=ranked.score,
            highlights=Highlights(
                title=highlight_text(doc.title, query, template),
                description=highlight_text(doc.description, query, template),
                content=highlight_text(snippet, query, template),
            ),
        )
