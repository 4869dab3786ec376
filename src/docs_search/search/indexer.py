"""Build-time indexer that turns the content tree into the search artifact.

The indexer walks the content root depth-first in sorted name order, so two
builds over unchanged content produce identical ``docs`` arrays (only the
``generated`` timestamp differs). Directories contribute slug segments and an
``index.md``/``index.mdx`` leaf maps to its directory's own slug.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import orjson

from docs_search.observability.metrics import INDEX_BUILD_ERRORS, INDEX_DOC_COUNT
from docs_search.observability.tracing import create_span
from docs_search.search.models import ARTIFACT_VERSION, SearchArtifact, SearchDocument
from docs_search.search.text import extract_headings, normalize_markdown
from docs_search.utils.front_matter import parse_front_matter


if TYPE_CHECKING:
    from docs_search.config import Settings


logger = logging.getLogger(__name__)

MARKDOWN_SUFFIXES = (".md", ".mdx")
INDEX_STEM = "index"


class ContentRootError(RuntimeError):
    """Raised when the content root cannot be listed."""


class DocumentLoadError(RuntimeError):
    """Raised when a single content file cannot be read."""


@dataclass(frozen=True)
class IndexBuildContext:
    """Immutable description of one index build."""

    content_root: Path
    output_path: Path
    max_content_chars: int = 2000
    default_category: str = "general"
    version: int = ARTIFACT_VERSION
    strict: bool = False

    @classmethod
    def from_settings(cls, settings: Settings, *, strict: bool = False) -> IndexBuildContext:
        return cls(
            content_root=settings.content_dir,
            output_path=settings.output_file,
            max_content_chars=settings.content_max_chars,
            default_category=settings.default_category,
            version=settings.artifact_version,
            strict=strict,
        )


@dataclass(frozen=True)
class IndexBuildResult:
    """Outcome of an index build."""

    documents_indexed: int
    errors: tuple[str, ...]
    output_path: Path | None
    artifact_bytes: int
    artifact: SearchArtifact


@dataclass(frozen=True)
class _ContentEntry:
    path: Path
    base_slug: str


def _utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def slug_for(path: Path, base_slug: str) -> str:
    """Return the canonical URL path for a content file under ``base_slug``."""

    if path.stem == INDEX_STEM:
        return base_slug or "/"
    return f"{base_slug}/{path.stem}"


def category_for(base_slug: str, default: str = "general") -> str:
    """Return the first slug segment after the content root."""

    segments = base_slug.split("/")
    if len(segments) > 1 and segments[1]:
        return segments[1]
    return default


class SearchIndexBuilder:
    """Collect documents from the content tree and persist the artifact."""

    def __init__(self, context: IndexBuildContext, *, clock: Callable[[], str] = _utc_timestamp) -> None:
        self.context = context
        self._clock = clock

    def build(self, *, persist: bool = True) -> IndexBuildResult:
        """Build the artifact and (optionally) write it to ``output_path``.

        Args:
            persist: When False, return the artifact without touching disk.

        Raises:
            ContentRootError: The content root is missing or unreadable.
            DocumentLoadError: A content file failed to load and ``strict`` is set.
        """

        with create_span("index.build", attributes={"content_root": str(self.context.content_root)}) as span:
            documents, errors = self.collect_documents()
            artifact = SearchArtifact(
                version=self.context.version,
                generated=self._clock(),
                total_docs=len(documents),
                docs=documents,
            )
            span.set_attribute("documents", len(documents))
            span.set_attribute("errors", len(errors))

            output_path: Path | None = None
            artifact_bytes = 0
            if persist:
                output_path = self.context.output_path
                artifact_bytes = write_artifact(artifact, output_path)

        INDEX_DOC_COUNT.labels(stage="built").set(len(documents))
        logger.info(
            "Indexed %d documents from %s (%d errors)",
            len(documents),
            self.context.content_root,
            len(errors),
        )
        return IndexBuildResult(
            documents_indexed=len(documents),
            errors=tuple(errors),
            output_path=output_path,
            artifact_bytes=artifact_bytes,
            artifact=artifact,
        )

    def collect_documents(self) -> tuple[list[SearchDocument], list[str]]:
        """Return documents in scan order plus per-file error messages."""

        root = self.context.content_root
        if not root.is_dir():
            raise ContentRootError(f"Content directory is missing or not a directory: {root}")

        documents: list[SearchDocument] = []
        errors: list[str] = []

        for entry in self._walk(root, "", errors):
            try:
                document = self._load_document(entry, doc_id=len(documents))
            except DocumentLoadError as exc:
                self._record_error(errors, str(exc))
                continue
            documents.append(document)
            logger.debug("Indexed %s as %s", entry.path, document.slug)

        return documents, errors

    # --- internal helpers -------------------------------------------------

    def _walk(self, directory: Path, base_slug: str, errors: list[str]) -> Iterator[_ContentEntry]:
        try:
            children = sorted(directory.iterdir(), key=lambda child: child.name)
        except OSError as exc:
            if directory == self.context.content_root:
                raise ContentRootError(f"Unable to read content directory {directory}: {exc}") from exc
            self._record_error(errors, f"Unable to read directory {directory}: {exc}")
            return

        for child in children:
            if child.name.startswith("."):
                continue
            if child.is_dir():
                yield from self._walk(child, f"{base_slug}/{child.name}", errors)
            elif child.suffix in MARKDOWN_SUFFIXES:
                yield _ContentEntry(path=child, base_slug=base_slug)

    def _load_document(self, entry: _ContentEntry, *, doc_id: int) -> SearchDocument:
        try:
            raw = entry.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentLoadError(f"Unable to read {entry.path}: {exc}") from exc

        front_matter, body = parse_front_matter(raw)
        title = front_matter.get("title") or entry.path.stem
        description = front_matter.get("description") or ""

        return SearchDocument(
            id=doc_id,
            title=str(title),
            description=str(description),
            slug=slug_for(entry.path, entry.base_slug),
            content=normalize_markdown(body, max_chars=self.context.max_content_chars),
            headings=" ".join(extract_headings(body)),
            category=category_for(entry.base_slug, self.context.default_category),
        )

    def _record_error(self, errors: list[str], message: str) -> None:
        logger.error("%s", message)
        INDEX_BUILD_ERRORS.labels().inc()
        if self.context.strict:
            raise DocumentLoadError(message)
        errors.append(message)


def serialize_artifact(artifact: SearchArtifact) -> bytes:
    return orjson.dumps(artifact.model_dump(by_alias=True))


def write_artifact(artifact: SearchArtifact, path: Path) -> int:
    """Atomically write the artifact and return its size in bytes."""

    serialized = serialize_artifact(artifact)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        tmp_path.write_bytes(serialized)
        tmp_path.replace(path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
    return len(serialized)
