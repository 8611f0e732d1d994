"""Redis-backed fixed-window rate limiter shared across service instances.

One counter per key and window: ``INCR`` then ``EXPIRE`` on first hit, run
in a single MULTI/EXEC pipeline. Transient Redis errors are retried; if Redis
stays unreachable the limiter fails open and logs, so an outage of the
limiter does not take cart operations down with it.
"""

import redis
import structlog
from redis.exceptions import RedisError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ratelimit.port import RateLimiter, RateLimitResult

logger = structlog.get_logger(__name__)


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(RedisError),
    )


class RedisRateLimiter(RateLimiter):
    def __init__(
        self,
        limit: int,
        window_seconds: int,
        url: str | None = None,
        client: redis.Redis | None = None,
        prefix: str = "ratelimit",
    ) -> None:
        super().__init__(limit, window_seconds)
        self.redis = client or redis.Redis.from_url(url, decode_responses=True)
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    @redis_retry()
    def _incr(self, key: str) -> tuple[int, int]:
        pipe = self.redis.pipeline(transaction=True)
        pipe.incr(key)
        pipe.expire(key, self.window_seconds, nx=True)
        pipe.ttl(key)
        count, _, ttl = pipe.execute()
        return int(count), int(ttl)

    def hit(self, key: str) -> RateLimitResult:
        try:
            count, ttl = self._incr(self._key(key))
        except RedisError as exc:
            logger.warning("Rate limiter unavailable, allowing request", key=key, error=str(exc))
            return RateLimitResult(allowed=True, remaining=self.limit, reset_in=float(self.window_seconds))

        reset_in = float(ttl if ttl > 0 else self.window_seconds)
        if count > self.limit:
            return RateLimitResult(allowed=False, remaining=0, reset_in=reset_in)
        return RateLimitResult(allowed=True, remaining=self.limit - count, reset_in=reset_in)

    @redis_retry()
    def reset(self, key: str | None = None) -> None:
        if key is not None:
            self.redis.delete(self._key(key))
            return
        for found in self.redis.scan_iter(match=f"{self.prefix}:*"):
            self.redis.delete(found)
