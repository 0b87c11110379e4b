"""
Cache stores used by the progressive cache.

A store keeps entries by cache key and indexes them by dependency key so an
entity change can evict every entry that depends on it.
"""

import threading
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterable, Optional, Set

from shared.logging import get_logger
from .models import CacheEntry


class CacheStore(ABC):
    """
    Storage port for the progressive cache.

    Implementations backed by an external service raise ``CacheStoreError``
    when it fails, with the client library error as ``__cause__``. The
    progressive cache does not catch it, so it reaches the repository caller.
    """

    name = "store"

    @abstractmethod
    async def get(self, key: str) -> Optional[CacheEntry]:
        """Get a live entry, refreshing its window when it slides."""

    @abstractmethod
    async def set(self, key: str, entry: CacheEntry) -> None:
        """Store an entry, replacing any previous one."""

    @abstractmethod
    async def remove(self, key: str) -> bool:
        """Remove a single entry."""

    @abstractmethod
    async def invalidate(self, dependency_keys: Iterable[str]) -> int:
        """Evict all entries depending on any of ``dependency_keys``."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove all entries."""

    @abstractmethod
    async def get_stats(self) -> Dict[str, Any]:
        """Get store statistics."""


class MemoryCacheStore(CacheStore):
    """In-process LRU store with absolute/sliding expiry and a dependency index."""

    name = "memory"

    def __init__(self, max_entries: int = 10000, clock: Callable[[], float] = time.monotonic):
        self.max_entries = max(1, max_entries)
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._dependency_index: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self.logger = get_logger("content_repository.cache.memory")

    async def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            now = self._clock()
            if entry.is_expired(now):
                self._remove_locked(key)
                self._misses += 1
                return None

            if entry.use_sliding_expiration:
                entry.refresh(now)
            self._entries.move_to_end(key)
            self._hits += 1
            return entry

    async def set(self, key: str, entry: CacheEntry) -> None:
        with self._lock:
            if key in self._entries:
                self._remove_locked(key)

            entry.refresh(self._clock())
            self._entries[key] = entry
            for dependency_key in entry.dependency_keys:
                self._dependency_index.setdefault(dependency_key.lower(), set()).add(key)

            while len(self._entries) > self.max_entries:
                oldest_key = next(iter(self._entries))
                self._remove_locked(oldest_key)
                self._evictions += 1

        self.logger.debug("Cached value", key=key, ttl=entry.ttl_seconds, dependencies=len(entry.dependency_keys))

    async def remove(self, key: str) -> bool:
        with self._lock:
            return self._remove_locked(key)

    async def invalidate(self, dependency_keys: Iterable[str]) -> int:
        removed = 0
        with self._lock:
            for dependency_key in dependency_keys:
                if not dependency_key:
                    continue
                for key in self._dependency_index.pop(dependency_key.lower(), set()):
                    if self._remove_locked(key):
                        removed += 1

        if removed:
            self.logger.info("Invalidated cache entries", count=removed)
        return removed

    async def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._dependency_index.clear()

    async def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "store": self.name,
                "total_keys": len(self._entries),
                "dependency_keys": len(self._dependency_index),
                "max_entries": self.max_entries,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    def _remove_locked(self, key: str) -> bool:
        entry = self._entries.pop(key, None)
        if entry is None:
            return False

        for dependency_key in entry.dependency_keys:
            index_key = dependency_key.lower()
            keys = self._dependency_index.get(index_key)
            if keys is None:
                continue
            keys.discard(key)
            if not keys:
                del self._dependency_index[index_key]
        return True
