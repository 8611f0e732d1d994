"""In-process fixed-window rate limiter for single-instance deployments and tests."""

import threading
import time

from ratelimit.port import RateLimiter, RateLimitResult


class InMemoryRateLimiter(RateLimiter):
    def __init__(self, limit: int, window_seconds: int, clock=time.monotonic) -> None:
        super().__init__(limit, window_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: dict[str, tuple[float, int]] = {}  # key -> (window_start, count)
        self._last_prune = clock()

    def _prune(self, now: float) -> None:
        # Sweep closed windows at most once per window length
        if now - self._last_prune < self.window_seconds:
            return
        self._windows = {
            key: (start, count) for key, (start, count) in self._windows.items() if now - start < self.window_seconds
        }
        self._last_prune = now

    def hit(self, key: str) -> RateLimitResult:
        now = self._clock()
        with self._lock:
            self._prune(now)
            start, count = self._windows.get(key, (now, 0))
            if now - start >= self.window_seconds:
                start, count = now, 0

            if count >= self.limit:
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    reset_in=self.window_seconds - (now - start),
                )

            count += 1
            self._windows[key] = (start, count)
            return RateLimitResult(
                allowed=True,
                remaining=self.limit - count,
                reset_in=self.window_seconds - (now - start),
            )

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)
