"""Search surface controller: debounced input, results and keyboard navigation.

``SearchSession`` is the state behind a search dialog. It owns no rendering;
the host reads ``status``, ``results`` and ``selected_index`` and forwards
user input (``set_query``, ``handle_key``, ``hover``, ``choose``). Navigation
and scrolling are injected callbacks so any UI layer can plug in.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import Enum
import logging
from typing import TYPE_CHECKING

from docs_search.search.debounce import Debouncer
from docs_search.search.engine import EngineState, QueryEngine
from docs_search.search.models import SearchResult


if TYPE_CHECKING:
    from docs_search.config import Settings


logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.15
DEFAULT_SUGGESTIONS = ("node", "scheduler", "ipc", "python", "simulation")


class Key(str, Enum):
    ARROW_DOWN = "ArrowDown"
    ARROW_UP = "ArrowUp"
    ENTER = "Enter"
    ESCAPE = "Escape"


class SearchStatus(str, Enum):
    """What the search surface should currently display."""

    CLOSED = "closed"
    LOADING = "loading"
    UNAVAILABLE = "unavailable"
    IDLE = "idle"
    SEARCHING = "searching"
    EMPTY = "empty"
    RESULTS = "results"


def _log_navigation(slug: str) -> None:
    logger.info("Navigate to %s", slug)


def _no_scroll(index: int) -> None:
    return None


class SearchSession:
    """Interactive search state for one page session."""

    def __init__(
        self,
        engine: QueryEngine,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        navigate: Callable[[str], None] = _log_navigation,
        scroll_into_view: Callable[[int], None] = _no_scroll,
        suggestions: Sequence[str] = DEFAULT_SUGGESTIONS,
    ) -> None:
        self.engine = engine
        self.suggestions = tuple(suggestions)
        self._navigate = navigate
        self._scroll_into_view = scroll_into_view
        self._debouncer: Debouncer[str] = Debouncer(debounce_seconds, self._execute)
        self._is_open = False
        self._query = ""
        self._results: list[SearchResult] = []
        self._selected_index = 0
        self._searching = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        engine: QueryEngine | None = None,
        navigate: Callable[[str], None] = _log_navigation,
        scroll_into_view: Callable[[int], None] = _no_scroll,
    ) -> SearchSession:
        return cls(
            engine or QueryEngine.from_settings(settings),
            debounce_seconds=settings.debounce_seconds,
            navigate=navigate,
            scroll_into_view=scroll_into_view,
            suggestions=settings.get_suggested_queries(),
        )

    # --- read-only view state ---------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def query(self) -> str:
        return self._query

    @property
    def results(self) -> list[SearchResult]:
        return list(self._results)

    @property
    def selected_index(self) -> int:
        return self._selected_index

    @property
    def selected_result(self) -> SearchResult | None:
        if 0 <= self._selected_index < len(self._results):
            return self._results[self._selected_index]
        return None

    @property
    def status(self) -> SearchStatus:
        if not self._is_open:
            return SearchStatus.CLOSED
        if self.engine.state is EngineState.ERROR:
            return SearchStatus.UNAVAILABLE
        if self.engine.state is not EngineState.READY:
            return SearchStatus.LOADING
        if self._searching or self._debouncer.pending:
            return SearchStatus.SEARCHING
        if not self._query.strip():
            return SearchStatus.IDLE
        if not self._results:
            return SearchStatus.EMPTY
        return SearchStatus.RESULTS

    @property
    def result_count_label(self) -> str:
        count = len(self._results)
        if count == 0:
            return ""
        return f"{count} result{'' if count == 1 else 's'}"

    # --- lifecycle ---------------------------------------------------------

    async def open(self) -> EngineState:
        """Show the search surface and load the index on first use."""
        self._is_open = True
        return await self.engine.open()

    async def retry(self) -> EngineState:
        """Manual "try again" after the index failed to load."""
        state = await self.engine.retry()
        if state is EngineState.READY and self._query.strip():
            self._debouncer.submit(self._query)
        return state

    def close(self) -> None:
        """Hide the surface and forget the query, results and pending search."""
        self._debouncer.cancel()
        self._is_open = False
        self._query = ""
        self._results = []
        self._selected_index = 0
        self._searching = False

    async def flush(self) -> None:
        """Wait for the pending debounced search to complete."""
        await self._debouncer.flush()

    # --- input -------------------------------------------------------------

    def set_query(self, text: str) -> None:
        """Record the latest input and schedule a debounced search."""
        self._query = text
        if not text.strip():
            self._debouncer.cancel()
            self._results = []
            self._selected_index = 0
            self._searching = False
            return
        self._debouncer.submit(text)

    def clear(self) -> None:
        self.set_query("")

    def apply_suggestion(self, term: str) -> None:
        self.set_query(term)

    def handle_key(self, key: str) -> bool:
        """Apply a keyboard event; returns True when the key was consumed."""

        if not self._is_open:
            return False

        if key == Key.ESCAPE:
            self.close()
            return True
        if key == Key.ARROW_DOWN:
            self._move_selection(1)
            return True
        if key == Key.ARROW_UP:
            self._move_selection(-1)
            return True
        if key == Key.ENTER:
            selected = self.selected_result
            if selected is None:
                return False
            self._navigate(selected.slug)
            self.close()
            return True
        return False

    def hover(self, index: int) -> None:
        if 0 <= index < len(self._results) and index != self._selected_index:
            self._selected_index = index
            self._scroll_into_view(index)

    def choose(self, index: int) -> None:
        """Open the result at ``index`` (mouse click)."""
        if not 0 <= index < len(self._results):
            raise IndexError(f"No result at position {index}")
        slug = self._results[index].slug
        self._navigate(slug)
        self.close()

    # --- internal helpers -------------------------------------------------

    def _move_selection(self, delta: int) -> None:
        if not self._results:
            self._selected_index = 0
            return
        last = len(self._results) - 1
        self._selected_index = max(0, min(self._selected_index + delta, last))
        self._scroll_into_view(self._selected_index)

    async def _execute(self, query: str, generation: int) -> None:
        self._searching = True
        try:
            results = await self.engine.search(query)
        finally:
            if self._debouncer.is_current(generation):
                self._searching = False

        if not self._debouncer.is_current(generation):
            logger.debug("Discarding superseded results for %r", query)
            return

        self._results = results
        self._selected_index = 0
        if results:
            self._scroll_into_view(0)
