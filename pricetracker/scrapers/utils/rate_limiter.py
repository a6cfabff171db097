"""Fixed-window rate limiter backed by Redis.

Each client key gets a counter per window (``ratelimit:<key>:<window>``).
INCR and EXPIRE run in a single MULTI/EXEC so concurrent callers sharing a
key are serialised by Redis itself; no local locking is done here.
"""

import time
from dataclasses import dataclass
from typing import Callable

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single ``limit()`` call."""

    allowed: bool
    limit: int
    remaining: int
    reset_at: float  # Unix timestamp at which the current window ends


class FixedWindowRateLimiter:
    """Permits at most ``permits`` calls per key in each fixed window.

    Windows are aligned to multiples of ``window_seconds`` since the epoch
    and reset all at once at the boundary. Rejected calls are not queued;
    callers decide how to degrade.
    """

    def __init__(
        self,
        redis: Redis,
        permits: int = 4,
        window_seconds: int = 100,
        prefix: str = "ratelimit",
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the limiter.

        Args:
            redis: Async Redis client holding the counters
            permits: Calls allowed per window (default 4)
            window_seconds: Window length in seconds (default 100)
            prefix: Key prefix, lets several limiters share one Redis
            clock: Wall-clock source, injectable for tests
        """
        if permits < 1:
            raise ValueError("permits must be at least 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be at least 1")

        self.redis = redis
        self.permits = permits
        self.window_seconds = window_seconds
        self.prefix = prefix
        self._clock = clock

    def _window_key(self, key: str, window: int) -> str:
        return f"{self.prefix}:{key}:{window}"

    async def limit(self, key: str) -> RateLimitResult:
        """Consume one permit for ``key`` if the current window has any left.

        Fails closed: if Redis cannot be reached the call is denied.
        """
        now = self._clock()
        window = int(now // self.window_seconds)
        reset_at = float((window + 1) * self.window_seconds)
        redis_key = self._window_key(key, window)

        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.incr(redis_key)
                pipe.expire(redis_key, self.window_seconds)
                count, _ = await pipe.execute()
        except RedisError as e:
            logger.error(
                "rate_limiter_unavailable",
                key=key,
                error=str(e),
            )
            return RateLimitResult(allowed=False, limit=self.permits, remaining=0, reset_at=reset_at)

        count = int(count)
        allowed = count <= self.permits
        result = RateLimitResult(
            allowed=allowed,
            limit=self.permits,
            remaining=max(0, self.permits - count),
            reset_at=reset_at,
        )

        if not allowed:
            logger.warning("rate_limit_exceeded", key=key, count=count, reset_at=reset_at)
        else:
            logger.debug("rate_limit_permit", key=key, remaining=result.remaining)

        return result
