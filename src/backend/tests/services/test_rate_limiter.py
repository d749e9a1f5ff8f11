"""
Tests for fixed-window rate limiting.
"""

import asyncio

import pytest
from fakeredis.aioredis import FakeRedis

from services.rate_limiter import (
    HOUR_MS,
    RATE_LIMITS,
    InMemoryRateLimitStore,
    RateLimitAction,
    RateLimiter,
    RedisRateLimitStore,
    create_rate_limit_store,
    get_rate_limit_key,
    retry_after_seconds,
)

START_MS = 1_700_000_000_000


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(clock: FakeClock) -> InMemoryRateLimitStore:
    return InMemoryRateLimitStore(clock=clock)


@pytest.fixture
async def redis_store(clock: FakeClock):
    redis = FakeRedis(decode_responses=True)
    store = RedisRateLimitStore(redis, clock=clock)
    yield store
    await store.close()


@pytest.mark.unit
class TestRateLimitHelpers:
    """Test key and retry helpers."""

    def test_key_format(self) -> None:
        assert get_rate_limit_key(RateLimitAction.POST, "fp", "ip") == "post:fp:ip"
        assert get_rate_limit_key("vote", "fp", "ip") == "vote:fp:ip"

    def test_limits(self) -> None:
        assert RATE_LIMITS[RateLimitAction.POST].max_requests == 3
        assert RATE_LIMITS[RateLimitAction.VOTE].max_requests == 100
        assert RATE_LIMITS[RateLimitAction.REPORT].max_requests == 10
        assert all(config.window_ms == HOUR_MS for config in RATE_LIMITS.values())

    def test_retry_after_rounds_up(self) -> None:
        assert retry_after_seconds(START_MS + 1001, START_MS) == 2
        assert retry_after_seconds(START_MS + 1000, START_MS) == 1

    def test_retry_after_never_negative(self) -> None:
        assert retry_after_seconds(START_MS - 5000, START_MS) == 0

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError):
            create_rate_limit_store("memcached")

    def test_redis_backend_requires_url(self) -> None:
        with pytest.raises(ValueError):
            create_rate_limit_store("redis", None)

    def test_memory_backend(self) -> None:
        assert isinstance(create_rate_limit_store("memory"), InMemoryRateLimitStore)


@pytest.mark.unit
class TestInMemoryRateLimitStore:
    """Test the process-local store."""

    async def test_three_allowed_then_denied(self, memory_store: InMemoryRateLimitStore) -> None:
        results = [await memory_store.check("post:fp:ip", 3, HOUR_MS) for _ in range(4)]

        assert [r.allowed for r in results] == [True, True, True, False]
        assert [r.remaining for r in results] == [2, 1, 0, 0]
        assert len({r.reset_at for r in results}) == 1

    async def test_denied_request_does_not_extend_or_count(
        self, memory_store: InMemoryRateLimitStore, clock: FakeClock
    ) -> None:
        for _ in range(5):
            await memory_store.check("k", 1, HOUR_MS)

        clock.advance(HOUR_MS)
        result = await memory_store.check("k", 1, HOUR_MS)

        assert result.allowed is True
        assert result.remaining == 0

    async def test_fresh_window_after_expiry(self, memory_store: InMemoryRateLimitStore, clock: FakeClock) -> None:
        for _ in range(3):
            await memory_store.check("k", 3, HOUR_MS)

        clock.advance(HOUR_MS + 1)
        result = await memory_store.check("k", 3, HOUR_MS)

        assert result.allowed is True
        assert result.remaining == 2
        assert result.reset_at == clock.now + HOUR_MS

    async def test_window_still_open_one_ms_before_reset(
        self, memory_store: InMemoryRateLimitStore, clock: FakeClock
    ) -> None:
        await memory_store.check("k", 1, HOUR_MS)
        clock.advance(HOUR_MS - 1)

        assert (await memory_store.check("k", 1, HOUR_MS)).allowed is False

    async def test_keys_are_independent(self, memory_store: InMemoryRateLimitStore) -> None:
        await memory_store.check("post:a:ip", 1, HOUR_MS)
        assert (await memory_store.check("post:b:ip", 1, HOUR_MS)).allowed is True

    async def test_reset(self, memory_store: InMemoryRateLimitStore) -> None:
        await memory_store.check("k", 1, HOUR_MS)
        await memory_store.reset("k")
        assert (await memory_store.check("k", 1, HOUR_MS)).allowed is True

    async def test_expired_entries_are_purged(self, memory_store: InMemoryRateLimitStore, clock: FakeClock) -> None:
        await memory_store.check("old", 1, 1000)
        clock.advance(2000)
        await memory_store.check("new", 1, HOUR_MS)

        assert memory_store.stats() == {"total": 1, "active": 1}

    async def test_concurrent_checks_never_over_admit(self, memory_store: InMemoryRateLimitStore) -> None:
        results = await asyncio.gather(*(memory_store.check("k", 3, HOUR_MS) for _ in range(20)))
        assert sum(r.allowed for r in results) == 3


@pytest.mark.unit
class TestRedisRateLimitStore:
    """Test the shared Redis store."""

    async def test_three_allowed_then_denied(self, redis_store: RedisRateLimitStore) -> None:
        results = [await redis_store.check("post:fp:ip", 3, HOUR_MS) for _ in range(4)]

        assert [r.allowed for r in results] == [True, True, True, False]
        assert [r.remaining for r in results] == [2, 1, 0, 0]

    async def test_denied_request_is_rolled_back(self, redis_store: RedisRateLimitStore) -> None:
        for _ in range(5):
            await redis_store.check("k", 2, HOUR_MS)

        assert int(await redis_store._redis.get("rl:k")) == 2

    async def test_rollback_skips_window_that_expired(self, redis_store: RedisRateLimitStore, monkeypatch) -> None:
        """A window that lapses before the rollback is not recreated without a TTL."""
        await redis_store.check("k", 1, HOUR_MS)
        rollback = redis_store._rollback

        async def expire_then_rollback(redis_key: str) -> None:
            await redis_store._redis.delete(redis_key)
            await rollback(redis_key)

        monkeypatch.setattr(redis_store, "_rollback", expire_then_rollback)

        assert (await redis_store.check("k", 1, HOUR_MS)).allowed is False
        assert await redis_store._redis.exists("rl:k") == 0

        monkeypatch.undo()
        result = await redis_store.check("k", 1, HOUR_MS)
        assert result.allowed is True
        assert result.remaining == 0
        assert await redis_store._redis.pttl("rl:k") > 0

    async def test_rollback_of_missing_key_is_noop(self, redis_store: RedisRateLimitStore) -> None:
        await redis_store._rollback("rl:gone")

        assert await redis_store._redis.exists("rl:gone") == 0

    async def test_window_has_ttl(self, redis_store: RedisRateLimitStore, clock: FakeClock) -> None:
        result = await redis_store.check("k", 3, HOUR_MS)

        ttl = await redis_store._redis.pttl("rl:k")
        assert 0 < ttl <= HOUR_MS
        assert clock.now < result.reset_at <= clock.now + HOUR_MS

    async def test_reset(self, redis_store: RedisRateLimitStore) -> None:
        await redis_store.check("k", 1, HOUR_MS)
        await redis_store.reset("k")
        assert (await redis_store.check("k", 1, HOUR_MS)).allowed is True

    async def test_fresh_window_after_expiry(self, redis_store: RedisRateLimitStore) -> None:
        await redis_store.check("k", 1, 50)
        await asyncio.sleep(0.1)

        result = await redis_store.check("k", 1, 50)
        assert result.allowed is True


@pytest.mark.unit
class TestRateLimiter:
    """Test the per-action policy."""

    async def test_uses_action_limit(self, memory_store: InMemoryRateLimitStore) -> None:
        limiter = RateLimiter(memory_store)

        results = [await limiter.check(RateLimitAction.POST, "fp", "ip") for _ in range(4)]

        assert [r.allowed for r in results] == [True, True, True, False]

    async def test_actions_have_separate_buckets(self, memory_store: InMemoryRateLimitStore) -> None:
        limiter = RateLimiter(memory_store)
        for _ in range(3):
            await limiter.check(RateLimitAction.POST, "fp", "ip")

        assert (await limiter.check(RateLimitAction.VOTE, "fp", "ip")).allowed is True

    async def test_same_fingerprint_different_ip_is_separate(self, memory_store: InMemoryRateLimitStore) -> None:
        limiter = RateLimiter(memory_store)
        for _ in range(3):
            await limiter.check(RateLimitAction.POST, "fp", "ip-1")

        assert (await limiter.check(RateLimitAction.POST, "fp", "ip-2")).allowed is True

    async def test_disabled_admits_everything(self, memory_store: InMemoryRateLimitStore, clock: FakeClock) -> None:
        limiter = RateLimiter(memory_store, enabled=False, clock=clock)

        results = [await limiter.check(RateLimitAction.POST, "fp", "ip") for _ in range(10)]

        assert all(r.allowed for r in results)
        assert all(r.remaining == 3 for r in results)
        assert memory_store.stats()["total"] == 0

    async def test_retry_after(self, memory_store: InMemoryRateLimitStore, clock: FakeClock) -> None:
        limiter = RateLimiter(memory_store, clock=clock)
        for _ in range(4):
            result = await limiter.check(RateLimitAction.POST, "fp", "ip")

        assert limiter.retry_after(result) == 3600
