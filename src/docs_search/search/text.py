"""Markdown-to-plain-text normalization for the search artifact.

Each step is a pure ``str -> str`` transform. ``normalize_markdown`` runs
them in a fixed order, so later steps can rely on earlier ones (links are
unwrapped before emphasis markers are removed, whitespace is collapsed last).
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
import re


TextTransform = Callable[[str], str]

_FENCED_CODE_PATTERN = re.compile(r"```[\s\S]*?```")
_INLINE_CODE_PATTERN = re.compile(r"`([^`]+)`")
_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_HEADING_MARKER_PATTERN = re.compile(r"#{1,6}\s*")
_EMPHASIS_PATTERN = re.compile(r"[*_~]")
_BLOCKQUOTE_PATTERN = re.compile(r">\s*")
_TABLE_CELL_PATTERN = re.compile(r"\|[^|]+\|")
_HORIZONTAL_RULE_PATTERN = re.compile(r"-{3,}")
_WHITESPACE_PATTERN = re.compile(r"\s+")

_HEADING_LINE_PATTERN = re.compile(r"^#{1,6}\s+(.+)$", re.MULTILINE)
_HEADING_MARKUP_PATTERN = re.compile(r"[*_`]")


def strip_code_blocks(text: str) -> str:
    return _FENCED_CODE_PATTERN.sub(" ", text)


def unwrap_inline_code(text: str) -> str:
    return _INLINE_CODE_PATTERN.sub(r"\1", text)


def replace_links(text: str) -> str:
    """Replace ``[label](target)`` with ``label``."""
    return _LINK_PATTERN.sub(r"\1", text)


def strip_heading_markers(text: str) -> str:
    return _HEADING_MARKER_PATTERN.sub("", text)


def strip_emphasis(text: str) -> str:
    return _EMPHASIS_PATTERN.sub("", text)


def strip_blockquotes(text: str) -> str:
    return _BLOCKQUOTE_PATTERN.sub("", text)


def collapse_tables(text: str) -> str:
    return _TABLE_CELL_PATTERN.sub(" ", text)


def collapse_horizontal_rules(text: str) -> str:
    return _HORIZONTAL_RULE_PATTERN.sub(" ", text)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_PATTERN.sub(" ", text)


NORMALIZATION_PIPELINE: tuple[TextTransform, ...] = (
    strip_code_blocks,
    unwrap_inline_code,
    replace_links,
    strip_heading_markers,
    strip_emphasis,
    strip_blockquotes,
    collapse_tables,
    collapse_horizontal_rules,
    collapse_whitespace,
    str.strip,
)


def normalize_markdown(
    text: str,
    *,
    max_chars: int | None = None,
    pipeline: Sequence[TextTransform] = NORMALIZATION_PIPELINE,
) -> str:
    """Reduce a markdown body to searchable plain text.

    Args:
        text: Markdown body without front matter.
        max_chars: Truncate the result to this many characters when set.
        pipeline: Transforms applied in order.

    Returns:
        Single-line plain text, truncated (never rejected) when too long.
    """
    for transform in pipeline:
        text = transform(text)
    if max_chars is not None:
        text = text[:max_chars]
    return text


def extract_headings(text: str) -> list[str]:
    """Return heading texts from a raw markdown body, in document order."""
    return [
        _HEADING_MARKUP_PATTERN.sub("", match.group(1)).strip() for match in _HEADING_LINE_PATTERN.finditer(text)
    ]
