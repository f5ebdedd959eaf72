"""
Sliding-window request budget for the external people-data API.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable, Deque


class RateLimitExceeded(Exception):
    """Raised in non-blocking mode when the window budget is exhausted."""

    def __init__(self, retry_after_seconds: float):
        super().__init__(f"Rate limit reached, retry in {retry_after_seconds:.1f}s")
        self.retry_after_seconds = retry_after_seconds


class SlidingWindowRateLimiter:
    """
    Allows at most `max_requests` calls in any rolling `window_seconds` window.

    Usage:
        limiter = SlidingWindowRateLimiter(max_requests=100)
        limiter.acquire()  # blocks until a slot is free
        # make API call
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float = 60.0,
        block: bool = True,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.block = block
        self._clock = clock
        self._sleep = sleep
        self._calls: Deque[float] = deque()
        self._lock = threading.Lock()

    def _prune(self, now: float) -> None:
        while self._calls and now - self._calls[0] >= self.window_seconds:
            self._calls.popleft()

    def remaining(self) -> int:
        with self._lock:
            self._prune(self._clock())
            return self.max_requests - len(self._calls)

    def acquire(self) -> None:
        """Take one slot from the window, waiting (or raising) when none is free."""
        while True:
            with self._lock:
                now = self._clock()
                self._prune(now)
                if len(self._calls) < self.max_requests:
                    self._calls.append(now)
                    return
                wait_time = self.window_seconds - (now - self._calls[0])
            if not self.block:
                raise RateLimitExceeded(max(wait_time, 0.0))
            self._sleep(max(wait_time, 0.01))
