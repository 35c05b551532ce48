"""Bounded-concurrency dispatch of async work items."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class DispatchError(Exception):
    """Raised when an item in a dispatched batch fails.

    Attributes:
        index: Zero-based position of the failed item
        cause: Exception raised by the transform
    """

    def __init__(self, index: int, cause: BaseException, label: str = "batch") -> None:
        self.index = index
        self.cause = cause
        super().__init__(f"{label} item {index} failed: {cause}")


class BoundedDispatcher:
    """Runs an async transform over a list of items with rate limits.

    At most ``max_concurrent`` transforms run at once and consecutive
    transform starts are spaced at least ``min_interval`` seconds apart.
    Results come back in input order. After the first failure no further
    items are started; items already running finish and are discarded.
    """

    def __init__(self, max_concurrent: int, min_interval: float = 0.0, name: str = "dispatcher") -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        if min_interval < 0:
            raise ValueError("min_interval must be non-negative")
        self.max_concurrent = max_concurrent
        self.min_interval = min_interval
        self.name = name

    async def map(
        self,
        items: Iterable[T],
        transform: Callable[[T], Awaitable[R]],
        label: Optional[str] = None,
    ) -> List[R]:
        """Apply ``transform`` to every item.

        Args:
            items: Work items
            transform: Coroutine function applied to each item
            label: Name used in logs and errors; defaults to the dispatcher name

        Returns:
            Transform results aligned with ``items``

        Raises:
            DispatchError: If any transform raised
        """
        items = list(items)
        label = label or self.name
        if not items:
            return []

        results: List[Optional[R]] = [None] * len(items)
        semaphore = asyncio.Semaphore(self.max_concurrent)
        start_lock = asyncio.Lock()
        loop = asyncio.get_running_loop()
        last_start: List[Optional[float]] = [None]
        failure: List[DispatchError] = []

        async def wait_for_start_slot() -> None:
            async with start_lock:
                if last_start[0] is not None and self.min_interval > 0:
                    wait = last_start[0] + self.min_interval - loop.time()
                    if wait > 0:
                        await asyncio.sleep(wait)
                last_start[0] = loop.time()

        async def run_item(index: int, item: T) -> None:
            async with semaphore:
                if failure:
                    return
                await wait_for_start_slot()
                if failure:
                    return
                logger.debug(f"{label}: starting item {index + 1}/{len(items)}")
                try:
                    results[index] = await transform(item)
                except Exception as e:
                    if not failure:
                        logger.error(f"{label}: item {index} failed: {e}")
                        failure.append(DispatchError(index, e, label))
                    else:
                        logger.debug(f"{label}: discarding error from item {index}: {e}")

        await asyncio.gather(*(run_item(index, item) for index, item in enumerate(items)))

        if failure:
            raise failure[0] from failure[0].cause

        logger.debug(f"{label}: completed {len(items)} items")
        return results  # type: ignore[return-value]
