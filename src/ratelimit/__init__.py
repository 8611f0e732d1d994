"""Rate limiter factory.

Provides get_rate_limiter() / set_rate_limiter():
- InMemoryRateLimiter for a single instance and for tests
- RedisRateLimiter when RATE_LIMIT_BACKEND=redis
"""

from ratelimit.port import RateLimiter

_current_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    """Return the cart-operation rate limiter, built from settings on first use."""
    global _current_limiter
    if _current_limiter is None:
        from ordering.utils import settings

        if settings.RATE_LIMIT_BACKEND == "redis":
            from ratelimit.redis_adapter import RedisRateLimiter

            _current_limiter = RedisRateLimiter(
                limit=settings.CART_RATE_LIMIT,
                window_seconds=settings.CART_RATE_WINDOW_SECONDS,
                url=settings.REDIS_URL,
            )
        else:
            from ratelimit.memory_adapter import InMemoryRateLimiter

            _current_limiter = InMemoryRateLimiter(
                limit=settings.CART_RATE_LIMIT,
                window_seconds=settings.CART_RATE_WINDOW_SECONDS,
            )
    return _current_limiter


def set_rate_limiter(limiter: RateLimiter) -> None:
    """Override the rate limiter (useful for tests)."""
    global _current_limiter
    _current_limiter = limiter


def reset_rate_limiter() -> None:
    global _current_limiter
    _current_limiter = None
