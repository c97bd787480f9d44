"""In-process caches for aggregation results and swap quotes."""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Hashable, TypeVar

from ..models import TokenAggregation

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class StaleCache:
    """Last successful aggregation per mint, kept only as a failure fallback.

    Lives as long as the tracker session that owns it. Entries are replaced on
    success and never evicted or cleared by a failure.
    """

    def __init__(self) -> None:
        self._entries: dict[str, TokenAggregation] = {}

    def put(self, mint: str, result: TokenAggregation) -> None:
        self._entries[mint] = result

    def get(self, mint: str) -> TokenAggregation | None:
        return self._entries.get(mint)

    def __contains__(self, mint: object) -> bool:
        return mint in self._entries

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class _Entry(Generic[V]):
    value: V
    updated_at: float
    generation: int = 0
    invalidated: bool = False


class QueryCache(Generic[K, V]):
    """Keyed cache of loaded values with freshness and in-flight sharing.

    ``fetch`` returns a fresh cached value, or runs the loader once per key
    and shares the pending load with every concurrent caller. A failed load
    leaves the previous entry in place. A load that was running when its key
    was invalidated stores its result already stale.
    """

    def __init__(
        self,
        stale_time: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._stale_time = stale_time
        self._clock = clock
        self._entries: dict[K, _Entry[V]] = {}
        self._inflight: dict[K, asyncio.Future[V]] = {}
        self._generations: dict[K, int] = {}

    def get_data(self, key: K) -> V | None:
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def set_data(self, key: K, value: V) -> None:
        self._entries[key] = _Entry(
            value=value,
            updated_at=self._clock(),
            generation=self._generations.get(key, 0),
        )

    def is_stale(self, key: K) -> bool:
        entry = self._entries.get(key)
        if entry is None or entry.invalidated:
            return True
        return self._clock() - entry.updated_at >= self._stale_time

    def is_fetching(self, key: K) -> bool:
        return key in self._inflight

    def keys(self) -> list[K]:
        return list(self._entries)

    def discard(self, key: K) -> None:
        self._entries.pop(key, None)

    async def fetch(self, key: K, loader: Callable[[], Awaitable[V]]) -> V:
        if not self.is_stale(key):
            return self._entries[key].value

        task = self._inflight.get(key)
        if task is None:
            generation = self._generations.get(key, 0)
            task = asyncio.ensure_future(self._load(key, loader, generation))
            self._inflight[key] = task
        # A cancelled caller must not cancel the load other callers wait on.
        return await asyncio.shield(task)

    async def _load(
        self, key: K, loader: Callable[[], Awaitable[V]], generation: int
    ) -> V:
        try:
            value = await loader()
        finally:
            if self._inflight.get(key) is asyncio.current_task():
                del self._inflight[key]

        if generation == self._generations.get(key, 0):
            self.set_data(key, value)
            return value

        # Invalidated mid-load: keep the value readable but stale, unless a
        # newer load has already stored a fresh one.
        current = self._entries.get(key)
        if current is None or (current.invalidated and current.generation <= generation):
            self._entries[key] = _Entry(
                value=value,
                updated_at=self._clock(),
                generation=generation,
                invalidated=True,
            )
        logger.debug("Load of %s finished after invalidation, stored as stale", key)
        return value

    async def invalidate(self, key: K) -> None:
        self._generations[key] = self._generations.get(key, 0) + 1
        self._inflight.pop(key, None)
        entry = self._entries.get(key)
        if entry is not None:
            entry.invalidated = True
            logger.debug("Invalidated cache entry %s", key)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
