"""In-memory LRU cache with sliding expiry."""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """Stored value with its current expiry time."""

    key: str
    value: T
    expires_at: float


class ResultCache(Generic[T]):
    """Bounded cache of naming results.

    Reading a live entry pushes its expiry forward by ``ttl_seconds`` and
    marks it most recently used. Expired entries are removed when touched,
    and inserting beyond ``max_size`` evicts the least recently used entry.
    """

    def __init__(
        self,
        max_size: int = 100,
        ttl_seconds: float = 3600.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry[T]]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[T]:
        """Return the live value for ``key`` and refresh its expiry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None

            now = self._clock()
            if entry.expires_at <= now:
                del self._entries[key]
                self.misses += 1
                LOGGER.debug("Cache entry %s expired", key[:12])
                return None

            entry.expires_at = now + self.ttl_seconds
            self._entries.move_to_end(key)
            self.hits += 1
            return entry.value

    def set(self, key: str, value: T) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(
                key=key, value=value, expires_at=self._clock() + self.ttl_seconds
            )
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                LOGGER.debug("Evicted cache entry %s", evicted[:12])

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            entry = self._entries.get(key) if isinstance(key, str) else None
            return entry is not None and entry.expires_at > self._clock()


__all__ = ["CacheEntry", "ResultCache"]
