"""
Fixed-window rate limiting keyed by action and anonymous identity.

Keys are composed as "{action}:{device_fingerprint}:{ip_hash}", so evading a
limit requires controlling both signals. Clients sharing an IP behind NAT
with identical fingerprints share a bucket; that is an accepted approximation.

Two stores implement the same interface:
- InMemoryRateLimitStore: process-local. State is lost on restart and is not
  shared between replicas.
- RedisRateLimitStore: shared counters for horizontally scaled deployments.
"""

import asyncio
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import structlog
from redis.asyncio import Redis
from redis.exceptions import WatchError

logger = structlog.get_logger(__name__)

HOUR_MS = 60 * 60 * 1000

ROLLBACK_ATTEMPTS = 3


class RateLimitAction(str, Enum):
    """Write actions subject to rate limiting."""

    POST = "post"
    VOTE = "vote"
    REPORT = "report"


@dataclass(frozen=True)
class RateLimitConfig:
    """Maximum number of requests allowed per window."""

    max_requests: int
    window_ms: int


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single rate limit check."""

    allowed: bool
    remaining: int
    reset_at: int  # epoch milliseconds


RATE_LIMITS: dict[RateLimitAction, RateLimitConfig] = {
    RateLimitAction.POST: RateLimitConfig(max_requests=3, window_ms=HOUR_MS),
    RateLimitAction.VOTE: RateLimitConfig(max_requests=100, window_ms=HOUR_MS),
    RateLimitAction.REPORT: RateLimitConfig(max_requests=10, window_ms=HOUR_MS),
}


def now_ms() -> int:
    return int(time.time() * 1000)


def get_rate_limit_key(action: RateLimitAction | str, device_fingerprint: str, ip_hash: str) -> str:
    """Build the bucket key for an action performed by an identity pair."""
    action_value = action.value if isinstance(action, RateLimitAction) else action
    return f"{action_value}:{device_fingerprint}:{ip_hash}"


def retry_after_seconds(reset_at: int, now: Optional[int] = None) -> int:
    """Whole seconds until a window resets, for Retry-After style messaging."""
    current = now_ms() if now is None else now
    return max(0, math.ceil((reset_at - current) / 1000))


class RateLimitStore(ABC):
    """Storage-agnostic fixed-window counter."""

    @abstractmethod
    async def check(self, key: str, max_requests: int, window_ms: int) -> RateLimitResult:
        """
        Count a request against a key.

        Opens a fresh window when none exists or the current one elapsed.
        Admits and increments while count < max_requests; otherwise denies
        without incrementing.
        """

    @abstractmethod
    async def reset(self, key: str) -> None:
        """Forget the window for a key."""

    async def close(self) -> None:
        """Release any underlying connections."""


@dataclass
class _WindowEntry:
    count: int
    reset_at: int


class InMemoryRateLimitStore(RateLimitStore):
    """Process-local store guarded by an asyncio lock."""

    def __init__(self, clock: Callable[[], int] = now_ms):
        self._clock = clock
        self._entries: dict[str, _WindowEntry] = {}
        self._lock = asyncio.Lock()

    async def check(self, key: str, max_requests: int, window_ms: int) -> RateLimitResult:
        async with self._lock:
            now = self._clock()
            self._purge_expired(now)

            entry = self._entries.get(key)
            if entry is None or entry.reset_at <= now:
                # Replace rather than mutate, so an old window never leaks into the new one
                entry = _WindowEntry(count=0, reset_at=now + window_ms)
                self._entries[key] = entry

            allowed = entry.count < max_requests
            if allowed:
                entry.count += 1

            return RateLimitResult(
                allowed=allowed,
                remaining=max(0, max_requests - entry.count),
                reset_at=entry.reset_at,
            )

    async def reset(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(key, None)

    def _purge_expired(self, now: int) -> None:
        expired = [k for k, entry in self._entries.items() if entry.reset_at <= now]
        for k in expired:
            del self._entries[k]

    def stats(self) -> dict[str, int]:
        """Entry counts, for diagnostics."""
        now = self._clock()
        active = sum(1 for entry in self._entries.values() if entry.reset_at > now)
        return {"total": len(self._entries), "active": active}


class RedisRateLimitStore(RateLimitStore):
    """
    Shared store backed by Redis.

    The window is created with SET NX PX and counted with INCR inside one
    MULTI/EXEC, so concurrent checks from different replicas never lose
    increments. A denied request is taken back out with DECR under WATCH,
    and only while the window key still exists, so a window that expired in
    between is never recreated without a TTL.
    """

    def __init__(self, redis: Redis, namespace: str = "rl", clock: Callable[[], int] = now_ms):
        self._redis = redis
        self._namespace = namespace
        self._clock = clock

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def check(self, key: str, max_requests: int, window_ms: int) -> RateLimitResult:
        redis_key = self._key(key)

        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.set(redis_key, 0, px=window_ms, nx=True)
            pipe.incr(redis_key)
            pipe.pttl(redis_key)
            _, count, ttl_ms = await pipe.execute()

        now = self._clock()
        if ttl_ms is None or ttl_ms < 0:
            # Key lost its expiry (should not happen); restore it so the bucket cannot stick forever
            await self._redis.pexpire(redis_key, window_ms)
            ttl_ms = window_ms
        reset_at = now + int(ttl_ms)

        count = int(count)
        if count > max_requests:
            await self._rollback(redis_key)
            return RateLimitResult(allowed=False, remaining=0, reset_at=reset_at)

        return RateLimitResult(
            allowed=True,
            remaining=max(0, max_requests - count),
            reset_at=reset_at,
        )

    async def _rollback(self, redis_key: str) -> None:
        """Undo one denied increment if its window is still open."""
        for _ in range(ROLLBACK_ATTEMPTS):
            async with self._redis.pipeline(transaction=True) as pipe:
                try:
                    await pipe.watch(redis_key)
                    if not await pipe.exists(redis_key):
                        return
                    pipe.multi()
                    pipe.decr(redis_key)
                    await pipe.execute()
                    return
                except WatchError:
                    continue

        # Contended key: leaving the extra count only makes the window stricter
        logger.debug("rate_limit_rollback_skipped", key=redis_key)

    async def reset(self, key: str) -> None:
        await self._redis.delete(self._key(key))

    async def close(self) -> None:
        await self._redis.aclose()


class RateLimiter:
    """
    Applies the per-action policy on top of a store.

    When disabled every request is admitted with the full allowance.
    """

    def __init__(
        self,
        store: RateLimitStore,
        enabled: bool = True,
        limits: Optional[dict[RateLimitAction, RateLimitConfig]] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self.enabled = enabled
        self.limits = limits or RATE_LIMITS
        self._clock = clock

    async def check(
        self,
        action: RateLimitAction,
        device_fingerprint: str,
        ip_hash: str,
    ) -> RateLimitResult:
        config = self.limits[action]

        if not self.enabled:
            return RateLimitResult(
                allowed=True,
                remaining=config.max_requests,
                reset_at=self._clock() + config.window_ms,
            )

        key = get_rate_limit_key(action, device_fingerprint, ip_hash)
        result = await self.store.check(key, config.max_requests, config.window_ms)

        if not result.allowed:
            logger.warning(
                "rate_limit_exceeded",
                action=action.value,
                fingerprint=device_fingerprint[:8],
                limit=config.max_requests,
            )

        return result

    def retry_after(self, result: RateLimitResult) -> int:
        return retry_after_seconds(result.reset_at, self._clock())


def create_rate_limit_store(backend: str, redis_url: Optional[str] = None) -> RateLimitStore:
    """Build the configured store. Unknown backends are a configuration error."""
    if backend == "memory":
        return InMemoryRateLimitStore()
    if backend == "redis":
        if not redis_url:
            raise ValueError("REDIS_URL must be set for the redis rate limit backend")
        return RedisRateLimitStore(Redis.from_url(redis_url, decode_responses=True))
    raise ValueError(f"Unknown rate limit backend: {backend}")
