"""Tests for the rate limiter, response cache and expiry sweep."""
import asyncio

import pytest

from relay.config import CacheSettings, RateLimitSettings, RouteLimit
from relay.throttle import RateLimiter, ResponseCache, StateSweeper, make_cache_key


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


class TestRateLimiter:
    """Tests for the fixed-window RateLimiter."""

    def test_request_over_quota_rejected(self, clock):
        """The (N+1)th request inside the window is denied."""
        limiter = RateLimiter(RateLimitSettings(requests=3, window_seconds=60), clock=clock)

        decisions = [limiter.check("client-a", "/api/summarize") for _ in range(4)]

        assert [d.allowed for d in decisions] == [True, True, True, False]
        assert [d.remaining for d in decisions] == [2, 1, 0, 0]

    def test_window_reset_allows_again(self, clock):
        limiter = RateLimiter(RateLimitSettings(requests=1, window_seconds=60), clock=clock)

        assert limiter.check("client-a").allowed
        assert not limiter.check("client-a").allowed

        clock.advance(60)
        assert limiter.check("client-a").allowed

    def test_retry_after_counts_down(self, clock):
        limiter = RateLimiter(RateLimitSettings(requests=1, window_seconds=60), clock=clock)
        limiter.check("client-a")
        clock.advance(20.5)

        decision = limiter.check("client-a")

        assert decision.retry_after == pytest.approx(39.5)
        assert limiter.retry_after_header(decision) == "40"

    def test_clients_counted_separately(self, clock):
        limiter = RateLimiter(RateLimitSettings(requests=1, window_seconds=60), clock=clock)

        assert limiter.check("client-a").allowed
        assert limiter.check("client-b").allowed
        assert not limiter.check("client-a").allowed

    def test_routes_counted_separately_with_overrides(self, clock):
        settings = RateLimitSettings(
            requests=1,
            window_seconds=60,
            routes={"/api/reply": RouteLimit(requests=2, window_seconds=60)},
        )
        limiter = RateLimiter(settings, clock=clock)

        assert limiter.check("c", "/api/summarize").allowed
        assert not limiter.check("c", "/api/summarize").allowed
        assert limiter.check("c", "/api/reply").allowed
        assert limiter.check("c", "/api/reply").allowed
        assert not limiter.check("c", "/api/reply").allowed

    def test_prune_and_reset(self, clock):
        limiter = RateLimiter(RateLimitSettings(requests=5, window_seconds=10), clock=clock)
        limiter.check("a")
        clock.advance(5)
        limiter.check("b")
        clock.advance(6)

        assert limiter.prune() == 1
        assert len(limiter) == 1

        limiter.reset()
        assert len(limiter) == 0


class TestResponseCache:
    """Tests for the TTL ResponseCache."""

    def test_key_ignores_body_key_order(self):
        first = make_cache_key("/api/summarize", {"a": 1, "b": {"x": 1, "y": 2}})
        second = make_cache_key("/api/summarize", {"b": {"y": 2, "x": 1}, "a": 1})
        assert first == second

    def test_key_differs_by_route_and_body(self):
        body = {"threadContent": {"text": "hello"}}
        assert make_cache_key("/api/summarize", body) != make_cache_key("/api/reply", body)
        assert make_cache_key("/api/summarize", body) != make_cache_key(
            "/api/summarize", {"threadContent": {"text": "hello!"}}
        )

    def test_entry_expires_after_ttl(self, clock):
        cache = ResponseCache(CacheSettings(ttl_seconds=30), clock=clock)
        cache.set("k", {"success": True})

        clock.advance(29)
        assert cache.get("k") == {"success": True}

        clock.advance(1)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_get_returns_copy(self, clock):
        cache = ResponseCache(CacheSettings(), clock=clock)
        cache.set("k", {"summary": {"keyPoints": ["a"]}})

        cached = cache.get("k")
        cached["summary"]["keyPoints"].append("mutated")
        cached["fromCache"] = True

        assert cache.get("k") == {"summary": {"keyPoints": ["a"]}}

    def test_clear_reports_count(self, clock):
        cache = ResponseCache(CacheSettings(), clock=clock)
        cache.set("a", {})
        cache.set("b", {})

        assert cache.clear() == 2
        assert cache.get("a") is None

    def test_purge_expired(self, clock):
        cache = ResponseCache(CacheSettings(ttl_seconds=10), clock=clock)
        cache.set("old", {})
        clock.advance(5)
        cache.set("new", {})
        clock.advance(6)

        assert cache.purge_expired() == 1
        assert len(cache) == 1

    def test_disabled_cache_stores_nothing(self, clock):
        cache = ResponseCache(CacheSettings(enabled=False), clock=clock)
        cache.set("k", {"success": True})

        assert cache.get("k") is None
        assert len(cache) == 0


class TestStateSweeper:
    """Tests for background eviction of expired throttle state."""

    def test_sweep_evicts_abandoned_clients(self, clock):
        limiter = RateLimiter(RateLimitSettings(requests=5, window_seconds=60), clock=clock)
        cache = ResponseCache(CacheSettings(ttl_seconds=60), clock=clock)
        for i in range(1000):
            limiter.check(f"client-{i}", "/api/summarize")
            cache.set(f"key-{i}", {"success": True})
        clock.advance(61)

        sweeper = StateSweeper(limiter, cache)

        assert sweeper.sweep_once() == (1000, 1000)
        assert len(limiter) == 0
        assert len(cache) == 0

    def test_sweep_keeps_live_state(self, clock):
        limiter = RateLimiter(RateLimitSettings(requests=5, window_seconds=60), clock=clock)
        cache = ResponseCache(CacheSettings(ttl_seconds=60), clock=clock)
        limiter.check("old")
        cache.set("old", {})
        clock.advance(30)
        limiter.check("new")
        cache.set("new", {})
        clock.advance(31)

        assert StateSweeper(limiter, cache).sweep_once() == (1, 1)
        assert len(limiter) == 1
        assert cache.get("new") == {}

    @pytest.mark.asyncio
    async def test_background_task_sweeps_until_stopped(self, clock):
        limiter = RateLimiter(RateLimitSettings(requests=5, window_seconds=10), clock=clock)
        cache = ResponseCache(CacheSettings(ttl_seconds=10), clock=clock)
        sweeper = StateSweeper(limiter, cache, interval_seconds=0.01)

        await sweeper.start()
        assert sweeper.running
        limiter.check("gone")
        cache.set("gone", {})
        clock.advance(11)
        await asyncio.sleep(0.1)

        assert len(limiter) == 0
        assert len(cache) == 0

        await sweeper.stop()
        assert not sweeper.running

    @pytest.mark.asyncio
    async def test_stop_without_start(self, clock):
        sweeper = StateSweeper(RateLimiter(clock=clock), ResponseCache(clock=clock))
        await sweeper.stop()
        assert not sweeper.running
