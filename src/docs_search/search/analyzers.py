"""Analyzer utilities for the in-memory search index.

Analyzers follow a composable tokenizer/filter design: a tokenizer turns text
into a stream of ``Token`` objects and filters transform that stream. The
index analyzer adds a forward (prefix) expansion step so that a partially
typed query term such as ``rob`` finds documents containing ``robot``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
import re
from typing import Protocol


@dataclass
class Token:
    """Represents a token emitted by analyzers."""

    text: str
    position: int

    def copy_with(self, **updates: object) -> Token:
        data = {
            "text": self.text,
            "position": self.position,
        }
        data.update(updates)
        return Token(**data)  # type: ignore[arg-type]


class Analyzer(Protocol):
    """Protocol implemented by analyzers."""

    def __call__(self, text: str) -> list[Token]:  # pragma: no cover - interface definition
        ...


class Tokenizer(Protocol):
    """Protocol implemented by tokenizers."""

    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    """Protocol implemented by token filters."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class RegexTokenizer:
    """Regex-based tokenizer that yields alphanumeric word tokens."""

    def __init__(self, pattern: str = r"[^\W_]+", flags: int = re.UNICODE) -> None:
        self.pattern = re.compile(pattern, flags)

    def __call__(self, text: str) -> Iterator[Token]:
        for position, match in enumerate(self.pattern.finditer(text)):
            yield Token(text=match.group(0), position=position)


class LowercaseFilter:
    """Filter that lowercases token text."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text.islower():
                yield token
            else:
                yield token.copy_with(text=token.text.lower())


class ForwardFilter:
    """Expand each token into all of its prefixes, shortest first.

    Every prefix keeps the position of the word it came from, so an index
    built from this stream answers prefix queries with a plain key lookup.
    """

    def __init__(self, min_length: int = 1) -> None:
        self.min_length = min_length

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            for end in range(self.min_length, len(token.text) + 1):
                yield token.copy_with(text=token.text[:end])


class AnalyzerPipeline:
    """Composable analyzer pipeline (tokenizer + filters)."""

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] | None = None) -> None:
        self.tokenizer = tokenizer
        self.filters = list(filters or [])

    def __call__(self, text: str) -> list[Token]:
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        return list(stream)


class QueryAnalyzer:
    """Lowercased word tokens, de-duplicated in first-seen order."""

    def __init__(self) -> None:
        self.pipeline = AnalyzerPipeline(RegexTokenizer(), [LowercaseFilter()])

    def __call__(self, text: str) -> list[Token]:
        seen: set[str] = set()
        tokens: list[Token] = []
        for token in self.pipeline(text):
            if token.text in seen:
                continue
            seen.add(token.text)
            tokens.append(token)
        return tokens


class ForwardAnalyzer:
    """Index-side analyzer: lowercased words expanded to every prefix."""

    def __init__(self, *, min_length: int = 1) -> None:
        self.pipeline = AnalyzerPipeline(RegexTokenizer(), [LowercaseFilter(), ForwardFilter(min_length)])

    def __call__(self, text: str) -> list[Token]:
        return self.pipeline(text)
