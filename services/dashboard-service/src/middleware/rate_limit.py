import asyncio
import os
import time
from collections import defaultdict, deque


class LoginRateLimiter:
    """
    Sliding-window limiter for password attempts, keyed by client IP.

    The shared project passwords are short, so login attempts are throttled
    per client. State lives in per-key deques of timestamps inside this
    process only.
    """

    def __init__(self, max_attempts: int, window_seconds: int = 60, clock=time.monotonic):
        self._max_attempts = max(1, max_attempts)
        self._window_seconds = max(1, window_seconds)
        self._clock = clock
        self._buckets: dict[str, deque[float]] = defaultdict(deque)
        self._lock = asyncio.Lock()

    async def allow(self, client_id: str) -> tuple[bool, float]:
        """
        Returns (allowed, retry_after_seconds). When disallowed, retry_after_seconds
        is how long the client should wait before its oldest attempt leaves the window.
        """

        now = self._clock()
        async with self._lock:
            bucket = self._buckets[client_id]
            threshold = now - self._window_seconds
            while bucket and bucket[0] <= threshold:
                bucket.popleft()

            if len(bucket) >= self._max_attempts:
                return False, max(self._window_seconds - (now - bucket[0]), 0.0)

            bucket.append(now)
            return True, 0.0


def build_default_rate_limiter() -> LoginRateLimiter:
    per_minute = int(os.getenv("DASHBOARD_LOGIN_ATTEMPTS_PER_MIN", "10"))
    return LoginRateLimiter(max_attempts=per_minute, window_seconds=60)
