"""Bounded asyncio fan-out for blocking filesystem work."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

T = TypeVar("T")
R = TypeVar("R")


@dataclass(slots=True)
class WorkerPool(Generic[T]):
    """Await work items with at most ``max_concurrency`` in flight."""

    max_concurrency: int
    peak_concurrency: int = field(default=0, init=False)
    _active: int = field(default=0, init=False, repr=False)
    _gate: asyncio.Semaphore | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_concurrency <= 0:
            raise ValueError("max_concurrency must be > 0")

    async def run(self, coroutines: Iterable[Awaitable[T]]) -> list[T]:
        """Await every coroutine; results keep input order. The first failure propagates."""

        # Created here so the semaphore binds to the running loop.
        self._gate = asyncio.Semaphore(self.max_concurrency)
        tasks = [asyncio.create_task(self._guarded(coroutine)) for coroutine in coroutines]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def map_in_threads(self, function: Callable[[R], T], items: Iterable[R]) -> list[T]:
        """Apply a blocking ``function`` to every item on worker threads."""

        return await self.run(asyncio.to_thread(function, item) for item in items)

    async def _guarded(self, coroutine: Awaitable[T]) -> T:
        assert self._gate is not None
        async with self._gate:
            self._active += 1
            self.peak_concurrency = max(self.peak_concurrency, self._active)
            try:
                return await coroutine
            finally:
                self._active -= 1


def run_blocking_fanout(
    function: Callable[[R], T], items: Iterable[R], *, max_concurrency: int
) -> list[T]:
    """Synchronous entry point for ``WorkerPool.map_in_threads``."""

    pool: WorkerPool[T] = WorkerPool(max_concurrency=max_concurrency)
    return asyncio.run(pool.map_in_threads(function, list(items)))


__all__ = [
    "WorkerPool",
    "run_blocking_fanout",
]
