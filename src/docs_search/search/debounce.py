"""Cancellable delayed execution for keystroke-driven queries."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import logging
from typing import Generic, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


class Debouncer(Generic[T]):
    """Run the callback with the most recent value once input pauses.

    Every ``submit`` cancels the pending run and bumps a generation counter.
    The callback receives the generation it was scheduled under and can ask
    ``is_current`` after any await to drop results that were superseded while
    it was suspended.
    """

    def __init__(self, delay: float, callback: Callable[[T, int], Awaitable[None]]) -> None:
        self.delay = delay
        self._callback = callback
        self._generation = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def submit(self, value: T) -> int:
        self.cancel()
        generation = self._generation
        self._task = asyncio.get_running_loop().create_task(self._run(value, generation))
        return generation

    def cancel(self) -> None:
        """Drop the pending run, if any, and invalidate in-flight callbacks."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._generation += 1

    async def flush(self) -> None:
        """Wait until the pending run (if any) has finished or been cancelled."""
        task = self._task
        if task is not None:
            await asyncio.wait({task})

    async def _run(self, value: T, generation: int) -> None:
        await asyncio.sleep(self.delay)
        if not self.is_current(generation):
            return
        logger.debug("Debounce elapsed; running generation %d", generation)
        await self._callback(value, generation)
