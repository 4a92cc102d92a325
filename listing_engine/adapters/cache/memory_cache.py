"""In-memory LRU cache for resolved reference points.

Lookups come from worker threads (the blocking geocoder runs through
``asyncio.to_thread``), so every operation holds one re-entrant lock.
Entries may expire after a TTL; past ``max_size`` the least recently
read entry is dropped.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, NamedTuple, Optional, TypeVar

T = TypeVar("T")


class _Entry(NamedTuple):
    value: Any
    expires_at: float


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


@dataclass
class InMemoryCache(Generic[T]):
    """CachePort backed by an OrderedDict.

    Attributes:
        default_ttl_seconds: Lifetime of an entry; None keeps it until evicted
        max_size: Entry limit; None means unbounded
        name: Suffix of the logger name

    Example:
        cache = InMemoryCache[GeoPoint](name="geolocation", default_ttl_seconds=3600)
        point = cache.get_or_compute("makkah:ar", lambda: resolve("makkah"))
    """

    default_ttl_seconds: Optional[float] = None
    max_size: Optional[int] = None
    name: str = "cache"

    _entries: "OrderedDict[str, _Entry]" = field(default_factory=OrderedDict, repr=False)
    _stats: CacheStats = field(default_factory=CacheStats, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(f"{__name__}.{self.name}")

    def get(self, key: str) -> Optional[T]:
        """Return the cached value, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.expires_at < time.monotonic():
                del self._entries[key]
                self._logger.debug("Cache entry expired", extra={"key": key})
                entry = None
            if entry is None:
                self._stats.misses += 1
                return None
            self._entries.move_to_end(key)
            self._stats.hits += 1
            return entry.value

    def set(self, key: str, value: T, ttl: Optional[float] = None) -> None:
        """Store a value, optionally with its own TTL."""
        lifetime = self.default_ttl_seconds if ttl is None else ttl
        expires_at = math.inf if lifetime is None else time.monotonic() + lifetime
        with self._lock:
            self._entries[key] = _Entry(value, expires_at)
            self._entries.move_to_end(key)
            while self.max_size is not None and len(self._entries) > self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                self._stats.evictions += 1
                self._logger.debug("Cache evicted entry", extra={"key": evicted})

    def get_or_compute(self, key: str, compute_fn: Callable[[], T]) -> T:
        """Return the cached value, computing and storing it on a miss.

        compute_fn runs outside the lock; concurrent misses on one key may
        each compute it.
        """
        cached = self.get(key)
        if cached is not None:
            return cached
        value = compute_fn()
        self.set(key, value)
        return value

    def clear(self) -> int:
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
            self._stats = CacheStats()
        self._logger.info("Cache cleared", extra={"entries_cleared": removed})
        return removed

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "size": len(self._entries),
                "hits": self._stats.hits,
                "misses": self._stats.misses,
                "evictions": self._stats.evictions,
                "hit_rate": round(self._stats.hit_rate, 3),
            }
