"""
In-process LRU cache with a fixed TTL.
"""
import time
from typing import Any, Callable, Optional

from cachetools import TTLCache


class MemoryCache:
    """Bounded LRU with per-entry expiry, keyed by string.

    An entry older than ``ttl_seconds`` is treated as absent. When
    ``maxsize`` is reached the least recently used entry is evicted.
    """

    def __init__(
        self,
        ttl_seconds: float,
        maxsize: int = 1024,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.maxsize = maxsize
        self._entries = TTLCache(maxsize=maxsize, ttl=ttl_seconds, timer=timer)

    def get(self, key: str) -> Optional[Any]:
        return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = value

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
