"""In-memory multi-field document index.

Each indexed field owns an inverted index keyed by token prefix. A field query
intersects the posting maps of every query token, so multi-word queries only
match documents where all words occur in that field. Hits are ordered by the
earliest position at which the weakest query token matched, then by document
id, and the caller merges per-field hit lists with a field-weight table.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from docs_search.search.analyzers import Analyzer, ForwardAnalyzer, QueryAnalyzer
from docs_search.search.models import SearchDocument


SEARCH_FIELDS: tuple[str, ...] = ("title", "description", "content", "headings")


@dataclass(frozen=True)
class FieldHit:
    """A document matched in one field."""

    id: int
    doc: SearchDocument | None = None


@dataclass(frozen=True)
class FieldResult:
    """Hits for one field, best first."""

    field: str
    result: tuple[FieldHit, ...]


class FieldIndex:
    """Prefix inverted index over a single document field."""

    def __init__(self, name: str, analyzer: Analyzer) -> None:
        self.name = name
        self._analyzer = analyzer
        # prefix -> {doc_id: first position of a word starting with prefix}
        self._postings: dict[str, dict[int, int]] = {}

    def add(self, doc_id: int, text: str) -> None:
        for token in self._analyzer(text):
            postings = self._postings.setdefault(token.text, {})
            if doc_id not in postings:
                postings[doc_id] = token.position

    def search(self, terms: Sequence[str], limit: int) -> list[int]:
        if not terms:
            return []

        candidates: dict[int, int] | None = None
        for term in terms:
            postings = self._postings.get(term)
            if not postings:
                return []
            if candidates is None:
                candidates = dict(postings)
                continue
            candidates = {
                doc_id: max(position, postings[doc_id]) for doc_id, position in candidates.items() if doc_id in postings
            }
            if not candidates:
                return []

        ranked = sorted(candidates.items(), key=lambda item: (item[1], item[0]))
        return [doc_id for doc_id, _ in ranked[:limit]]

    @property
    def term_count(self) -> int:
        return len(self._postings)


class DocumentIndex:
    """Searchable store of ``SearchDocument`` objects across several fields."""

    def __init__(
        self,
        fields: Sequence[str] = SEARCH_FIELDS,
        *,
        index_analyzer: Analyzer | None = None,
        query_analyzer: Analyzer | None = None,
    ) -> None:
        analyzer = index_analyzer or ForwardAnalyzer()
        self.fields = tuple(fields)
        self._field_indexes = {name: FieldIndex(name, analyzer) for name in self.fields}
        self._query_analyzer = query_analyzer or QueryAnalyzer()
        self._store: dict[int, SearchDocument] = {}

    @classmethod
    def from_documents(cls, documents: Iterable[SearchDocument], **kwargs) -> DocumentIndex:
        index = cls(**kwargs)
        for document in documents:
            index.add(document)
        return index

    def __len__(self) -> int:
        return len(self._store)

    def add(self, document: SearchDocument) -> None:
        if document.id in self._store:
            raise ValueError(f"Document id {document.id} is already indexed")
        self._store[document.id] = document
        for name, field_index in self._field_indexes.items():
            field_index.add(document.id, getattr(document, name))

    def get(self, doc_id: int) -> SearchDocument | None:
        return self._store.get(doc_id)

    def search(self, query: str, *, limit: int = 15, enrich: bool = True) -> list[FieldResult]:
        """Search every field independently.

        Args:
            query: Free-text query.
            limit: Maximum hits collected per field.
            enrich: Attach the stored document to each hit.

        Returns:
            One ``FieldResult`` per field with at least one hit, in field order.
        """

        terms = [token.text for token in self._query_analyzer(query)]
        if not terms:
            return []

        results: list[FieldResult] = []
        for name, field_index in self._field_indexes.items():
            doc_ids = field_index.search(terms, limit)
            if not doc_ids:
                continue
            hits = tuple(FieldHit(id=doc_id, doc=self._store[doc_id] if enrich else None) for doc_id in doc_ids)
            results.append(FieldResult(field=name, result=hits))
        return results
