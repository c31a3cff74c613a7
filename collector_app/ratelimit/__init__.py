"""
Rate limiting module.
Implements Strategy Pattern for pluggable counter stores.
"""

from .strategies import (
    RateLimitConfig,
    RateLimitResult,
    RateLimiterStrategy,
    InMemoryRateLimiter,
    RedisRateLimiter,
    NullRateLimiter,
)
from .factory import RateLimiterFactory, RateLimitBackend

__all__ = [
    "RateLimitConfig",
    "RateLimitResult",
    "RateLimiterStrategy",
    "InMemoryRateLimiter",
    "RedisRateLimiter",
    "NullRateLimiter",
    "RateLimiterFactory",
    "RateLimitBackend",
]
