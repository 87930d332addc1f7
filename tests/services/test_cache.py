"""
Tests for TtlCache and RequestCoalescer.

Covers:
- Expiry against an injected clock
- Invalidation and clearing
- One in-flight call per key; shared results and shared failures
- In-flight entries removed after success, failure and cancellation
- Callers sharing a cancelled call rerun it
"""

import asyncio

import pytest

from procurement_services.cache import RequestCoalescer, TtlCache


class TestTtlCache:
    """Entries expire ttl_seconds after being set."""

    def test_get_before_expiry(self, deterministic_clock):
        cache = TtlCache(10, clock=deterministic_clock)
        cache.set("k", "v")
        deterministic_clock.advance(9)

        assert cache.get("k") == "v"

    def test_expires_at_ttl(self, deterministic_clock):
        cache = TtlCache(10, clock=deterministic_clock)
        cache.set("k", "v")
        deterministic_clock.advance(10)

        assert cache.get("k") is None
        assert len(cache) == 0

    def test_default_for_missing(self, deterministic_clock):
        cache = TtlCache(10, clock=deterministic_clock)

        assert cache.get("missing", "fallback") == "fallback"

    def test_set_refreshes_expiry(self, deterministic_clock):
        cache = TtlCache(10, clock=deterministic_clock)
        cache.set("k", 1)
        deterministic_clock.advance(8)
        cache.set("k", 2)
        deterministic_clock.advance(8)

        assert cache.get("k") == 2

    def test_invalidate_and_clear(self, deterministic_clock):
        cache = TtlCache(10, clock=deterministic_clock)
        cache.set(("a", 1), 1)
        cache.set(("b", 2), 2)

        cache.invalidate(("a", 1))
        cache.invalidate("never-set")
        assert cache.get(("a", 1)) is None
        assert len(cache) == 1

        cache.clear()
        assert len(cache) == 0

    def test_zero_ttl_never_hits(self, deterministic_clock):
        cache = TtlCache(0, clock=deterministic_clock)
        cache.set("k", "v")

        assert cache.get("k") is None

    def test_negative_ttl_rejected(self):
        with pytest.raises(ValueError):
            TtlCache(-1)


class TestRequestCoalescer:
    """Concurrent callers with one key share one call."""

    def test_concurrent_callers_share_result(self):
        coalescer = RequestCoalescer()
        calls = []

        async def load():
            calls.append(1)
            await asyncio.sleep(0.01)
            return "value"

        async def scenario():
            results = await asyncio.gather(*(coalescer.run("k", load) for _ in range(4)))
            return results, coalescer.in_flight

        results, in_flight = asyncio.run(scenario())

        assert results == ["value"] * 4
        assert len(calls) == 1
        assert in_flight == 0

    def test_distinct_keys_run_separately(self):
        coalescer = RequestCoalescer()
        calls = []

        async def load(key):
            calls.append(key)
            await asyncio.sleep(0)
            return key

        async def scenario():
            return await asyncio.gather(
                coalescer.run("a", lambda: load("a")),
                coalescer.run("b", lambda: load("b")),
            )

        assert asyncio.run(scenario()) == ["a", "b"]
        assert sorted(calls) == ["a", "b"]

    def test_failure_shared_and_cleared(self):
        coalescer = RequestCoalescer()
        calls = []

        async def load():
            calls.append(1)
            await asyncio.sleep(0.01)
            raise RuntimeError("store down")

        async def scenario():
            results = await asyncio.gather(
                *(coalescer.run("k", load) for _ in range(3)),
                return_exceptions=True,
            )
            return results, coalescer.in_flight

        results, in_flight = asyncio.run(scenario())

        assert len(calls) == 1
        assert all(isinstance(r, RuntimeError) for r in results)
        assert in_flight == 0

    def test_sequential_calls_rerun(self):
        coalescer = RequestCoalescer()
        calls = []

        async def load():
            calls.append(1)
            return len(calls)

        async def scenario():
            first = await coalescer.run("k", load)
            second = await coalescer.run("k", load)
            return first, second

        assert asyncio.run(scenario()) == (1, 2)

    def test_cancelled_owner_clears_entry(self):
        coalescer = RequestCoalescer()

        async def load():
            await asyncio.sleep(10)

        async def scenario():
            owner = asyncio.create_task(coalescer.run("k", load))
            await asyncio.sleep(0)
            owner.cancel()
            with pytest.raises(asyncio.CancelledError):
                await owner
            return coalescer.in_flight

        assert asyncio.run(scenario()) == 0

    def test_follower_reruns_when_owner_cancelled(self):
        coalescer = RequestCoalescer()
        calls = []

        async def load():
            calls.append(len(calls))
            if len(calls) == 1:
                await asyncio.sleep(10)
            return "fresh"

        async def scenario():
            owner = asyncio.create_task(coalescer.run("k", load))
            await asyncio.sleep(0)
            follower = asyncio.create_task(coalescer.run("k", load))
            await asyncio.sleep(0)
            owner.cancel()
            result = await follower
            with pytest.raises(asyncio.CancelledError):
                await owner
            return result, coalescer.in_flight

        result, in_flight = asyncio.run(scenario())

        assert result == "fresh"
        assert calls == [0, 1]
        assert in_flight == 0

    def test_cancelled_follower_does_not_disturb_owner(self):
        coalescer = RequestCoalescer()
        release = None

        async def load():
            await release.wait()
            return "value"

        async def scenario():
            nonlocal release
            release = asyncio.Event()
            owner = asyncio.create_task(coalescer.run("k", load))
            await asyncio.sleep(0)
            follower = asyncio.create_task(coalescer.run("k", load))
            await asyncio.sleep(0)
            follower.cancel()
            with pytest.raises(asyncio.CancelledError):
                await follower
            release.set()
            return await owner

        assert asyncio.run(scenario()) == "value"
