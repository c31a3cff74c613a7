"""
Factory for creating rate limiter instances.
Simple, clean factory with singleton caching.
"""

from enum import Enum
from .strategies import (
    RateLimitConfig,
    RateLimiterStrategy,
    InMemoryRateLimiter,
    RedisRateLimiter,
    NullRateLimiter,
)
from collector_app.config import settings
from collector_app.logging_config import get_logger

logger = get_logger("ratelimit")


class RateLimitBackend(Enum):
    """Available rate limiter backends"""
    MEMORY = "memory"
    REDIS = "redis"
    NULL = "null"


class RateLimiterFactory:
    """
    Creates the rate limiter once and reuses it.

    Gets configuration from settings (not passed as parameters).
    """

    _instance: RateLimiterStrategy = None  # Single cached instance

    @classmethod
    def create(cls, backend: RateLimitBackend) -> RateLimiterStrategy:
        """
        Create or return cached rate limiter.

        Args:
            backend: Type of rate limiter backend (from enum)

        Returns:
            Singleton rate limiter instance
        """
        if cls._instance is not None:
            return cls._instance

        config = RateLimitConfig(
            window_ms=settings.rate_limit_window_ms,
            max_requests=settings.rate_limit_max_requests,
        )

        if backend == RateLimitBackend.REDIS:
            import redis

            try:
                redis_client = redis.from_url(
                    settings.redis_url,
                    socket_connect_timeout=2,
                    socket_timeout=2,
                )

                # Test connection immediately
                redis_client.ping()

                cls._instance = RedisRateLimiter(config, redis_client)
                logger.info("Redis rate limiter initialized")

            except Exception as e:
                logger.warning("Redis connection failed (%s), falling back to in-memory rate limiter", e)
                cls._instance = InMemoryRateLimiter(config)

        elif backend == RateLimitBackend.MEMORY:
            cls._instance = InMemoryRateLimiter(config)
            logger.info("In-memory rate limiter initialized")

        elif backend == RateLimitBackend.NULL:
            cls._instance = NullRateLimiter(config)
            logger.info("Null rate limiter initialized")

        else:
            raise ValueError(f"Unknown rate limit backend: {backend}")

        return cls._instance

    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
