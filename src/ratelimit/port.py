"""Rate limiter port — per-key fixed-window counters.

Cart operations are limited per owner. The counter lives behind this port so
a multi-instance deployment can back it with a shared store.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_in: float  # Seconds until the current window closes


class RateLimiter(ABC):
    def __init__(self, limit: int, window_seconds: int) -> None:
        self.limit = limit
        self.window_seconds = window_seconds

    @abstractmethod
    def hit(self, key: str) -> RateLimitResult:
        """Record one operation for ``key`` and report whether it is allowed."""
        ...

    @abstractmethod
    def reset(self, key: str | None = None) -> None:
        """Forget counters for ``key`` (or all keys)."""
        ...
