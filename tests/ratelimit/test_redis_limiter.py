"""Tests for the Redis rate limiter against a mocked client."""

from unittest.mock import MagicMock

from ratelimit.redis_adapter import RedisRateLimiter
from redis.exceptions import ConnectionError as RedisConnectionError


def _limiter(*results):
    client = MagicMock()
    pipe = client.pipeline.return_value
    pipe.execute.side_effect = list(results)
    return RedisRateLimiter(limit=2, window_seconds=60, client=client), client, pipe


class TestRedisRateLimiter:
    def test_counts_within_window(self):
        limiter, client, pipe = _limiter([1, True, 60], [2, False, 42], [3, False, 41])

        first, second, third = (limiter.hit("cart:user-001") for _ in range(3))

        assert first.allowed and first.remaining == 1
        assert second.allowed and second.remaining == 0
        assert not third.allowed
        assert third.reset_in == 41.0
        pipe.incr.assert_called_with("ratelimit:cart:user-001")
        pipe.expire.assert_called_with("ratelimit:cart:user-001", 60, nx=True)
        client.pipeline.assert_called_with(transaction=True)

    def test_transient_error_is_retried(self):
        limiter, _, pipe = _limiter(RedisConnectionError("blip"), [1, True, 60])
        assert limiter.hit("k").allowed
        assert pipe.execute.call_count == 2

    def test_fails_open_when_redis_is_down(self):
        limiter, _, _ = _limiter(*[RedisConnectionError("down")] * 3)
        result = limiter.hit("k")
        assert result.allowed
        assert result.remaining == 2

    def test_reset_single_key(self):
        limiter, client, _ = _limiter()
        limiter.reset("k")
        client.delete.assert_called_once_with("ratelimit:k")
