"""Field-weighted merging of per-field search hits."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from docs_search.search.index import FieldResult
from docs_search.search.models import SearchDocument


DEFAULT_FIELD_WEIGHTS: Mapping[str, int] = MappingProxyType(
    {
        "title": 10,
        "headings": 5,
        "description": 3,
        "content": 1,
    }
)

# Weight for fields missing from the table
FALLBACK_FIELD_WEIGHT = 1


@dataclass(frozen=True)
class RankedDocument:
    """A document with its summed field weight."""

    doc: SearchDocument
    score: int


def rank_field_results(
    field_results: Iterable[FieldResult],
    weights: Mapping[str, int] = DEFAULT_FIELD_WEIGHTS,
    *,
    limit: int = 10,
) -> list[RankedDocument]:
    """Merge per-field hits into one ranked list.

    A document scores the sum of the weights of every field it matched in, so
    a title + content match scores 11 rather than 10. Ordering is by
    descending score; ties keep the order in which documents were first seen.

    Args:
        field_results: Enriched per-field hits (``FieldHit.doc`` populated).
        weights: Field name to weight mapping.
        limit: Number of documents kept after sorting.
    """

    accumulator: dict[int, RankedDocument] = {}
    for field_result in field_results:
        weight = weights.get(field_result.field, FALLBACK_FIELD_WEIGHT)
        for hit in field_result.result:
            if hit.doc is None:
                raise ValueError(f"Field hit {hit.id} is missing its document; search with enrich=True")
            existing = accumulator.get(hit.id)
            score = (existing.score if existing else 0) + weight
            accumulator[hit.id] = RankedDocument(doc=hit.doc, score=score)

    # sorted() is stable, so equal scores keep first-seen order
    ranked = sorted(accumulator.values(), key=lambda ranked_doc: -ranked_doc.score)
    return ranked[:limit]
