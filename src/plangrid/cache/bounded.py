# SPDX-License-Identifier: MIT

import time
from collections import OrderedDict
from enum import Enum
from typing import Callable, Generic, Iterator, Optional, TypeAlias, TypeVar

from plangrid.model.cache import CacheEntry, CacheStats

K = TypeVar("K", bound=str)
V = TypeVar("V")

Clock: TypeAlias = Callable[[], float]

DEFAULT_TTL_SECONDS = 5 * 60
DEFAULT_QUERY_CACHE_SIZE = 100


class EvictionPolicy(str, Enum):
    FIFO = "fifo"
    LRU = "lru"


class BoundedCache(Generic[V]):
    """
    Size-bounded key/value cache with a pluggable eviction order and optional TTL.

    Entries live in an OrderedDict whose first item is always the next
    eviction victim. FIFO keeps insertion order and never reorders on read,
    LRU moves every hit to the end. When `ttl` is set, entries older than
    `ttl` seconds on `clock` are dropped lazily on read and in bulk by
    `sweep_expired()`.

    Not thread safe: all access is expected from a single logical thread.
    """

    def __init__(
        self,
        max_size: int,
        policy: EvictionPolicy = EvictionPolicy.LRU,
        ttl: Optional[float] = None,
        clock: Clock = time.monotonic,
    ) -> None:
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        if ttl is not None and ttl < 0:
            raise ValueError(f"ttl must not be negative, got {ttl}")
        self.max_size = max_size
        self.policy = policy
        self.ttl = ttl
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry[V]] = OrderedDict()
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.expirations = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        entry = self._entries.get(key)
        return entry is not None and not self.__is_expired(entry, self._clock())

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries.keys()))

    def keys(self) -> list[str]:
        return list(self._entries.keys())

    def get(self, key: str, default: Optional[V] = None) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return default

        if self.__is_expired(entry, self._clock()):
            del self._entries[key]
            self.expirations += 1
            self.misses += 1
            return default

        if self.policy is EvictionPolicy.LRU:
            self._entries.move_to_end(key)
        self.hits += 1
        return entry["value"]

    def set(self, key: str, value: V) -> None:
        now = self._clock()
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.max_size:
            self._entries.popitem(last=False)
            self.evictions += 1

        self._entries[key] = {
            "key": key,
            "value": value,
            "inserted_at": now,
            "expires_at": now + self.ttl if self.ttl is not None else None,
        }

    def delete(self, key: str) -> bool:
        if key in self._entries:
            del self._entries[key]
            return True
        return False

    def sweep_expired(self) -> int:
        if self.ttl is None:
            return 0
        now = self._clock()
        expired_keys = [
            key
            for key, entry in self._entries.items()
            if self.__is_expired(entry, now)
        ]
        for key in expired_keys:
            del self._entries[key]
        self.expirations += len(expired_keys)
        return len(expired_keys)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> CacheStats:
        return {
            "size": len(self._entries),
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "expirations": self.expirations,
        }

    @staticmethod
    def __is_expired(entry: CacheEntry[V], now: float) -> bool:
        expires_at = entry["expires_at"]
        return expires_at is not None and now > expires_at


def query_cache(
    max_size: int = DEFAULT_QUERY_CACHE_SIZE,
    ttl: float = DEFAULT_TTL_SECONDS,
    clock: Clock = time.monotonic,
) -> BoundedCache[V]:
    """Insertion-ordered cache with expiry, as used for index query results."""
    return BoundedCache(max_size, EvictionPolicy.FIFO, ttl, clock)


def lru_cache(max_size: int, clock: Clock = time.monotonic) -> BoundedCache[V]:
    """Recency-ordered cache without expiry, as used for derived views."""
    return BoundedCache(max_size, EvictionPolicy.LRU, None, clock)
