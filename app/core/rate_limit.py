"""In-memory per-user sliding window rate limiting."""

import time
import threading
import logging
from collections import deque
from typing import Callable, Deque

from cachetools import TTLCache

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Allows at most ``max_requests`` per user within ``window_seconds``.

    State is per process and lost on restart. Users idle for a whole window
    are evicted from the cache.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float = 60.0,
        max_users: int = 10000,
        clock: Callable[[], float] = time.monotonic
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._requests: TTLCache = TTLCache(maxsize=max_users, ttl=window_seconds, timer=clock)
        self._lock = threading.Lock()

    def _prune(self, timestamps: Deque[float], now: float) -> None:
        while timestamps and now - timestamps[0] >= self.window_seconds:
            timestamps.popleft()

    def check(self, user_id: str) -> bool:
        """Record a request for ``user_id`` and report whether it is allowed."""
        with self._lock:
            now = self._clock()
            timestamps = self._requests.get(user_id)
            if timestamps is None:
                timestamps = deque()
            self._prune(timestamps, now)

            if len(timestamps) >= self.max_requests:
                logger.info(f"Rate limit hit for user {user_id}")
                return False

            timestamps.append(now)
            self._requests[user_id] = timestamps
            return True

    def remaining(self, user_id: str) -> int:
        """Number of requests ``user_id`` may still make in the current window."""
        with self._lock:
            timestamps = self._requests.get(user_id)
            if not timestamps:
                return self.max_requests
            self._prune(timestamps, self._clock())
            return max(0, self.max_requests - len(timestamps))

    def reset(self) -> None:
        """Forget all recorded requests."""
        with self._lock:
            self._requests.clear()
