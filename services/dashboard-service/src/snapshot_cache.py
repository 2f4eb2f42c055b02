import time
from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


class SnapshotCache(Generic[T]):
    """
    Time-boxed in-memory cache keyed by project key.

    Stores (value, stored_at) pairs; an entry is served until `ttl_seconds` have
    passed since it was stored. The clock is injectable so tests can move time
    forward without sleeping. No locking: the service runs on one event loop.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl_seconds = max(0.0, ttl_seconds)
        self._clock = clock
        self._entries: Dict[str, Tuple[T, float]] = {}

    def get(self, key: str) -> Optional[T]:
        """Return the cached value for `key` while it is still fresh, else None."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self._clock() - stored_at >= self._ttl_seconds:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: T) -> None:
        self._entries[key] = (value, self._clock())

    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop one entry, or every entry when `key` is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)
