"""
Unit tests for the in-process query cache.
"""

import asyncio

import pytest

from aquafeed_admin.errors import BackendError
from aquafeed_admin.services.query_cache import QueryCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class CountingFetcher:
    """Returns queued results (or raises queued errors) and counts calls."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(0)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return QueryCache(stale_time=45, gc_time=300, retry=1, clock=clock)


class TestFreshness:
    """Tests for stale time."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_fresh_entry_is_served_from_cache(self, cache, clock):
        fetcher = CountingFetcher({"n": 1})
        first = await cache.fetch(("admin-stats",), fetcher)
        clock.advance(30)
        second = await cache.fetch(("admin-stats",), fetcher)

        assert fetcher.calls == 1
        assert not first.from_cache
        assert second.from_cache
        assert second.data == {"n": 1}
        assert cache.stats()["hits"] == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stale_entry_is_refetched(self, cache, clock):
        fetcher = CountingFetcher({"n": 1}, {"n": 2})
        await cache.fetch(("admin-stats",), fetcher)
        clock.advance(45)
        result = await cache.fetch(("admin-stats",), fetcher)

        assert fetcher.calls == 2
        assert result.data == {"n": 2}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_keys_are_independent(self, cache):
        await cache.fetch(("users", ("page", "1")), CountingFetcher("p1"))
        result = await cache.fetch(("users", ("page", "2")), CountingFetcher("p2"))
        assert result.data == "p2"


class TestDeduplication:
    """Tests for sharing in-flight requests."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_concurrent_reads_share_one_request(self, cache):
        gate = asyncio.Event()
        calls = 0

        async def slow():
            nonlocal calls
            calls += 1
            await gate.wait()
            return {"ok": True}

        tasks = [asyncio.ensure_future(cache.fetch(("admin-chart-data",), slow)) for _ in range(5)]
        await asyncio.sleep(0)
        assert cache.stats()["in_flight"] == 1
        gate.set()
        results = await asyncio.gather(*tasks)

        assert calls == 1
        assert all(r.data == {"ok": True} for r in results)
        assert cache.stats()["in_flight"] == 0


class TestRetry:
    """Tests for retry and error fallback."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_server_error_is_retried_once(self, cache):
        fetcher = CountingFetcher(BackendError(503, "Service Unavailable"), {"ok": True})
        result = await cache.fetch(("admin-stats",), fetcher)
        assert fetcher.calls == 2
        assert result.data == {"ok": True}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_gives_up_after_retry(self, cache):
        fetcher = CountingFetcher(BackendError(500, "boom"))
        with pytest.raises(BackendError):
            await cache.fetch(("admin-stats",), fetcher)
        assert fetcher.calls == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_transport_error_is_retried(self, cache):
        fetcher = CountingFetcher(BackendError(None, "Backend unreachable"), {"ok": True})
        result = await cache.fetch(("admin-stats",), fetcher)
        assert result.data == {"ok": True}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self, cache):
        fetcher = CountingFetcher(BackendError(404, "Not found"))
        with pytest.raises(BackendError):
            await cache.fetch(("admin-stats",), fetcher)
        assert fetcher.calls == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_refetch_keeps_previous_data(self, cache, clock):
        fetcher = CountingFetcher({"n": 1}, BackendError(500, "boom"))
        await cache.fetch(("admin-stats",), fetcher)
        clock.advance(60)
        result = await cache.fetch(("admin-stats",), fetcher)

        assert result.data == {"n": 1}
        assert result.error == "boom"
        assert result.from_cache


class TestInvalidation:
    """Tests for invalidate, remove, sweep and clear."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_invalidate_by_family_prefix(self, cache):
        await cache.fetch(("admin-ingredients", ("page", "1")), CountingFetcher("a"))
        await cache.fetch(("admin-ingredients", ("page", "2")), CountingFetcher("b"))
        await cache.fetch(("admin-stats",), CountingFetcher("c"))

        assert cache.invalidate("admin-ingredients") == 2

        fetcher = CountingFetcher("a2")
        result = await cache.fetch(("admin-ingredients", ("page", "1")), fetcher)
        assert fetcher.calls == 1
        assert result.data == "a2"
        assert (await cache.fetch(("admin-stats",), CountingFetcher("zzz"))).data == "c"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_invalidated_entry_is_still_peekable(self, cache):
        await cache.fetch(("categories", "stage"), CountingFetcher(["x"]))
        cache.invalidate(("categories",))
        assert cache.peek(("categories", "stage")) == ["x"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_invalidate_during_fetch_keeps_entry_stale(self, cache):
        """A mutation landing mid-read must not let the old read count as fresh."""
        backend = {"value": "old"}
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_read():
            value = backend["value"]
            started.set()
            await release.wait()
            return value

        key = ("admin-ingredients", ("page", "1"))
        pending = asyncio.create_task(cache.fetch(key, slow_read))
        await started.wait()

        backend["value"] = "new"
        assert cache.invalidate("admin-ingredients") == 1
        release.set()
        assert (await pending).data == "old"

        result = await cache.fetch(key, slow_read)
        assert result.data == "new"
        assert not result.from_cache
        assert cache.stats()["in_flight"] == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_remove(self, cache):
        await cache.fetch(("auth-me", "s1"), CountingFetcher("me"))
        assert cache.remove(("auth-me", "s1")) == 1
        assert cache.peek(("auth-me", "s1")) is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_sweep_evicts_idle_entries(self, cache, clock):
        await cache.fetch(("old",), CountingFetcher(1))
        clock.advance(200)
        await cache.fetch(("recent",), CountingFetcher(2))
        clock.advance(100)

        assert cache.sweep() == 1
        assert cache.peek(("old",)) is None
        assert cache.peek(("recent",)) == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_clear_resets_counters(self, cache):
        await cache.fetch(("a",), CountingFetcher(1))
        cache.clear()
        stats = cache.stats()
        assert stats["entries"] == 0
        assert stats["misses"] == 0
