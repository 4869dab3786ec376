"""Shared test fixtures and configuration."""

from __future__ import annotations

from collections.abc import Callable
import os
from pathlib import Path

import pytest

from docs_search.search.models import SearchDocument


# Test environment that pins every setting the tests rely on
TEST_ENV = {
    "DOCS_SEARCH_CONTENT_DIR": "content/docs",
    "DOCS_SEARCH_OUTPUT_FILE": "public/search-index.json",
    "DOCS_SEARCH_PUBLIC_DIR": "public",
    "DOCS_SEARCH_ARTIFACT_PATH": "/search-index.json",
    "DOCS_SEARCH_SITE_BASE_URL": "",
    "DOCS_SEARCH_CONTENT_MAX_CHARS": "2000",
    "DOCS_SEARCH_FIELD_SEARCH_LIMIT": "15",
    "DOCS_SEARCH_RESULT_LIMIT": "10",
    "DOCS_SEARCH_SNIPPET_LENGTH": "150",
    "DOCS_SEARCH_SNIPPET_LEFT_CONTEXT": "40",
    "DOCS_SEARCH_DEBOUNCE_MS": "150",
    "DOCS_SEARCH_LOG_LEVEL": "info",
    "DOCS_SEARCH_LOG_JSON": "false",
}


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Pin DOCS_SEARCH_* variables and run each test from an empty directory."""
    for key in list(os.environ):
        if key.startswith("DOCS_SEARCH_"):
            monkeypatch.delenv(key, raising=False)
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    # Keep a developer's .env file from leaking into Settings()
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def make_document() -> Callable[..., SearchDocument]:
    """Factory for SearchDocument instances with sensible defaults."""

    def _make(doc_id: int, title: str, **fields: str) -> SearchDocument:
        fields.setdefault("slug", f"/docs/{doc_id}")
        return SearchDocument(id=doc_id, title=title, **fields)

    return _make


@pytest.fixture
def sample_documents(make_document) -> list[SearchDocument]:
    return [
        make_document(
            0,
            "Scheduler",
            description="How node execution is ordered",
            content="The scheduler manages node execution order",
            headings="Scheduler Overview",
            category="concepts",
        ),
        make_document(
            1,
            "Nodes",
            description="Building blocks of an application",
            content="A node owns state and publishes messages to topics",
            headings="Lifecycle Ticking",
            category="concepts",
        ),
        make_document(
            2,
            "Python bindings",
            description="Using the runtime from Python",
            content="Install the package and create a scheduler from Python code",
            headings="Installation Quickstart",
            category="python",
        ),
    ]
