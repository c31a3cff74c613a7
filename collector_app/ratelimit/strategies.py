"""
Rate limiter strategies using Strategy Pattern.
Allows switching between different counter stores (Redis, In-Memory, Null).

All limiters are fixed-window: at most ``max_requests`` hits per key in
each ``window_ms`` slice. State lives in the limiter instance (or Redis),
never in module globals.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Tuple
import time

from collector_app.logging_config import get_logger

logger = get_logger("ratelimit")


@dataclass(frozen=True)
class RateLimitConfig:
    window_ms: int
    max_requests: int


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    retry_after_ms: int = 0


def _now_ms() -> int:
    return int(time.monotonic() * 1000)


class RateLimiterStrategy(ABC):
    """
    Abstract base class for rate limiters.

    Async because the Redis backend does network I/O.
    """

    def __init__(self, config: RateLimitConfig):
        self.config = config

    @abstractmethod
    async def hit(self, key: str) -> RateLimitResult:
        """
        Count one request for key.

        Args:
            key: Caller identity, usually the client IP

        Returns:
            RateLimitResult; allowed is False once the window is used up
        """
        pass

    @abstractmethod
    async def reset(self) -> bool:
        """Forget all counters"""
        pass


class InMemoryRateLimiter(RateLimiterStrategy):
    """
    Per-process fixed-window counters.

    Fine for a single worker; each worker process counts separately.
    """

    def __init__(self, config: RateLimitConfig, clock: Callable[[], int] = _now_ms):
        super().__init__(config)
        self._clock = clock
        self._windows: Dict[str, Tuple[int, int]] = {}  # key -> (window_start_ms, count)

    async def hit(self, key: str) -> RateLimitResult:
        now = self._clock()
        start, count = self._windows.get(key, (now, 0))
        if now - start >= self.config.window_ms:
            start, count = now, 0

        if count >= self.config.max_requests:
            return RateLimitResult(
                allowed=False,
                remaining=0,
                retry_after_ms=self.config.window_ms - (now - start),
            )

        count += 1
        self._windows[key] = (start, count)
        self._evict_expired(now)
        return RateLimitResult(allowed=True, remaining=self.config.max_requests - count)

    def _evict_expired(self, now: int):
        # Keep the table bounded by the number of keys active in one window
        if len(self._windows) < 10_000:
            return
        expired = [k for k, (start, _) in self._windows.items() if now - start >= self.config.window_ms]
        for k in expired:
            del self._windows[k]

    async def reset(self) -> bool:
        self._windows.clear()
        return True


class RedisRateLimiter(RateLimiterStrategy):
    """
    Shared counters in Redis (INCR + PEXPIRE per window).

    Works across worker processes. Fails open: if Redis errors, the request
    is allowed and the error logged.
    """

    KEY_PREFIX = "ratelimit"

    def __init__(self, config: RateLimitConfig, redis_client):
        """
        Args:
            config: Window and quota
            redis_client: Redis client instance (redis.Redis)
        """
        super().__init__(config)
        self.redis = redis_client

    def _window_key(self, key: str) -> Tuple[str, int]:
        now = int(time.time() * 1000)
        window = now // self.config.window_ms
        remaining_ms = self.config.window_ms - (now % self.config.window_ms)
        return f"{self.KEY_PREFIX}:{key}:{window}", remaining_ms

    async def hit(self, key: str) -> RateLimitResult:
        redis_key, remaining_ms = self._window_key(key)
        try:
            pipe = self.redis.pipeline()
            pipe.incr(redis_key)
            pipe.pexpire(redis_key, self.config.window_ms)
            count, _ = pipe.execute()
        except Exception as e:
            logger.warning("Redis rate limit check failed, allowing request: %s", e)
            return RateLimitResult(allowed=True, remaining=self.config.max_requests)

        if count > self.config.max_requests:
            return RateLimitResult(allowed=False, remaining=0, retry_after_ms=remaining_ms)
        return RateLimitResult(allowed=True, remaining=self.config.max_requests - count)

    async def reset(self) -> bool:
        try:
            for redis_key in self.redis.scan_iter(f"{self.KEY_PREFIX}:*"):
                self.redis.delete(redis_key)
            return True
        except Exception as e:
            logger.warning("Redis rate limit reset failed: %s", e)
            return False


class NullRateLimiter(RateLimiterStrategy):
    """
    Null Object Pattern - limiter that never limits.

    Used for tests and deployments that rate-limit at the proxy.
    """

    async def hit(self, key: str) -> RateLimitResult:
        return RateLimitResult(allowed=True, remaining=self.config.max_requests)

    async def reset(self) -> bool:
        return True
