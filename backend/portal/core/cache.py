"""Small per-process key/value cache with a fixed expiry window.

Instances are created by whoever needs them and passed in explicitly, so
each process (or test) owns its own copy. There is no cross-process
coherence: entries simply expire and get refetched.
"""

import threading
import time
from typing import Callable, Generic, Optional, TypeVar

from cachetools import TTLCache as _ExpiringMap

V = TypeVar("V")

DEFAULT_MAXSIZE = 256


class TTLCache(Generic[V]):
    """Lock-guarded ``cachetools.TTLCache`` with load-through lookups.

    Args:
        ttl_seconds: Lifetime of an entry from the moment it is set.
        clock: Monotonic time source; injectable for tests.
        maxsize: Entries kept before the least recently used one is evicted.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic,
                 maxsize: int = DEFAULT_MAXSIZE):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._entries: _ExpiringMap = _ExpiringMap(maxsize=maxsize, ttl=ttl_seconds, timer=clock)
        # cachetools caches are not thread-safe.
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[V]:
        """Return the cached value, or None when absent or expired."""
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, value: V) -> None:
        with self._lock:
            self._entries[key] = value

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def get_or_load(self, key: str, loader: Callable[[], Optional[V]]) -> Optional[V]:
        """Return the cached value or call ``loader``. ``None`` results are not cached."""
        value = self.get(key)
        if value is not None:
            return value
        value = loader()
        if value is not None:
            self.set(key, value)
        return value

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)
