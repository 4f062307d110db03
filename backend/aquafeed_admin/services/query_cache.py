"""
In-process query cache for backend reads.

Mirrors the dashboard's data-fetching cache semantics on the server:
- entries are fresh for ``stale_time`` seconds and served without a backend call
- concurrent reads of the same key share one in-flight request
- failed reads are retried ``retry`` times (4xx answers are not retried)
- a failed refetch falls back to the previous value, flagged with the error
- ``invalidate(prefix)`` marks a query family stale after a mutation
- ``sweep()`` evicts entries unread for ``gc_time`` seconds
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Hashable, Optional

from aquafeed_admin.config import get_settings
from aquafeed_admin.errors import BackendError

logger = logging.getLogger(__name__)

QueryKey = tuple[Hashable, ...]
Fetcher = Callable[[], Awaitable[Any]]


@dataclass
class QueryResult:
    """Data returned by the cache, with the error of a failed refetch if any."""

    data: Any
    error: Optional[str] = None
    from_cache: bool = False


@dataclass
class _Entry:
    data: Any = None
    has_data: bool = False
    updated_at: float = float("-inf")
    last_accessed: float = 0.0
    in_flight: Optional[asyncio.Task] = None
    generation: int = 0


class QueryCache:
    """Keyed cache with stale time, request de-duplication and retry."""

    def __init__(
        self,
        stale_time: float | None = None,
        gc_time: float | None = None,
        retry: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        settings = get_settings()
        self.stale_time = settings.query_stale_seconds if stale_time is None else stale_time
        self.gc_time = settings.query_gc_seconds if gc_time is None else gc_time
        self.retry = settings.query_retry if retry is None else retry
        self._clock = clock
        self._entries: dict[QueryKey, _Entry] = {}
        self.hits = 0
        self.misses = 0

    def _is_fresh(self, entry: _Entry, now: float) -> bool:
        return entry.has_data and now - entry.updated_at < self.stale_time

    async def fetch(self, key: QueryKey, fetcher: Fetcher) -> QueryResult:
        """Return cached data for ``key`` or load it through ``fetcher``."""
        now = self._clock()
        entry = self._entries.setdefault(key, _Entry())
        entry.last_accessed = now

        if self._is_fresh(entry, now):
            self.hits += 1
            return QueryResult(data=entry.data, from_cache=True)

        self.misses += 1
        if entry.in_flight is None:
            entry.in_flight = asyncio.ensure_future(self._load(key, entry, fetcher, entry.generation))
        task = entry.in_flight

        try:
            data = await asyncio.shield(task)
        except BackendError as e:
            if entry.has_data:
                logger.warning("Refetch of %s failed, serving previous data: %s", key, e)
                return QueryResult(data=entry.data, error=e.message, from_cache=True)
            raise
        return QueryResult(data=data)

    async def _load(self, key: QueryKey, entry: _Entry, fetcher: Fetcher, generation: int) -> Any:
        try:
            attempt = 0
            while True:
                try:
                    data = await fetcher()
                    break
                except BackendError as e:
                    if e.is_client_error or attempt >= self.retry:
                        raise
                    attempt += 1
                    logger.info("Retrying %s after error (%d/%d): %s", key, attempt, self.retry, e)
            # An invalidation during the load leaves the entry stale.
            if entry.generation == generation:
                entry.data = data
                entry.has_data = True
                entry.updated_at = self._clock()
            return data
        finally:
            if entry.generation == generation:
                entry.in_flight = None

    def peek(self, key: QueryKey) -> Any:
        """Cached data for ``key`` without triggering a fetch, or None."""
        entry = self._entries.get(key)
        return entry.data if entry and entry.has_data else None

    def invalidate(self, prefix: QueryKey | Hashable) -> int:
        """Mark every entry whose key starts with ``prefix`` as stale."""
        if not isinstance(prefix, tuple):
            prefix = (prefix,)
        count = 0
        for key, entry in self._entries.items():
            if key[: len(prefix)] == prefix:
                entry.updated_at = float("-inf")
                entry.generation += 1
                entry.in_flight = None
                count += 1
        if count:
            logger.debug("Invalidated %d queries under %s", count, prefix)
        return count

    def remove(self, prefix: QueryKey | Hashable) -> int:
        """Drop every entry whose key starts with ``prefix``."""
        if not isinstance(prefix, tuple):
            prefix = (prefix,)
        doomed = [k for k, e in self._entries.items() if k[: len(prefix)] == prefix and e.in_flight is None]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def sweep(self) -> int:
        """Evict entries that nobody read for ``gc_time`` seconds."""
        now = self._clock()
        doomed = [
            key
            for key, entry in self._entries.items()
            if entry.in_flight is None and now - entry.last_accessed >= self.gc_time
        ]
        for key in doomed:
            del self._entries[key]
        if doomed:
            logger.debug("Evicted %d idle queries", len(doomed))
        return len(doomed)

    def clear(self):
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def stats(self) -> dict:
        return {
            "entries": len(self._entries),
            "in_flight": sum(1 for e in self._entries.values() if e.in_flight is not None),
            "hits": self.hits,
            "misses": self.misses,
            "stale_time_seconds": self.stale_time,
            "gc_time_seconds": self.gc_time,
        }
