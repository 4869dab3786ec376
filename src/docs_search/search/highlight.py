"""Query-term highlighting and content snippet extraction.

Both helpers work on the raw query string rather than analyzed tokens: the
query is split on whitespace and terms of a single character are dropped so
that typing "a" does not light up every article in the result list.
"""

from __future__ import annotations

import re


DEFAULT_HIGHLIGHT_TEMPLATE = "<mark>{}</mark>"
ELLIPSIS = "..."
MIN_TERM_LENGTH = 2


def query_terms(query: str) -> list[str]:
    """Return lowercased whitespace-separated terms longer than one character."""

    return [term for term in query.lower().split() if len(term) >= MIN_TERM_LENGTH]


def build_highlight_pattern(terms: list[str]) -> re.Pattern[str] | None:
    """Compile one case-insensitive alternation over the escaped terms.

    Longer terms come first so that "scheduler" wins over "sched" when both
    were typed.
    """

    if not terms:
        return None
    ordered = sorted(dict.fromkeys(terms), key=len, reverse=True)
    return re.compile("|".join(re.escape(term) for term in ordered), re.IGNORECASE)


def highlight_text(text: str, query: str, template: str = DEFAULT_HIGHLIGHT_TEMPLATE) -> str:
    """Wrap every occurrence of a query term in the highlight marker.

    Args:
        text: Text to highlight; returned unchanged when nothing matches.
        query: Raw query string.
        template: Marker with a ``{}`` placeholder for the matched text.

    Returns:
        Text with matches wrapped, preserving their original case.
    """

    if not text or not query.strip():
        return text

    pattern = build_highlight_pattern(query_terms(query))
    if pattern is None:
        return text

    before, _, after = template.partition("{}")
    return pattern.sub(lambda match: f"{before}{match.group(0)}{after}", text)


def content_snippet(content: str, query: str, max_length: int = 150, left_context: int = 40) -> str:
    """Cut a window of ``content`` around the first query-term match.

    The window is ``max_length`` characters wide and starts ``left_context``
    characters before the earliest match of any term. Ellipses mark each side
    that was cut. Without a match the snippet is the start of the content.
    """

    if not content:
        return ""

    terms = query_terms(query)
    if not terms:
        return content[:max_length] + ELLIPSIS

    lower_content = content.lower()
    best_index = -1
    for term in terms:
        index = lower_content.find(term)
        if index != -1 and (best_index == -1 or index < best_index):
            best_index = index

    if best_index == -1:
        return content[:max_length] + (ELLIPSIS if len(content) > max_length else "")

    start = max(0, best_index - left_context)
    end = min(len(content), best_index + max_length - left_context)
    snippet = content[start:end]

    if start > 0:
        snippet = ELLIPSIS + snippet
    if end < len(content):
        snippet = snippet + ELLIPSIS

    return snippet
