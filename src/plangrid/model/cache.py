# SPDX-License-Identifier: MIT

from typing import Generic, Optional, TypedDict, TypeVar

V = TypeVar("V")


class CacheEntry(TypedDict, Generic[V]):
    key: str
    value: V
    inserted_at: float
    expires_at: Optional[float]


class CacheStats(TypedDict):
    size: int
    max_size: int
    hits: int
    misses: int
    evictions: int
    expirations: int
