"""In-memory expiring cache used to memoise classification and embedding calls."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

V = TypeVar("V")


@dataclass
class _Entry(Generic[V]):
    value: V
    stored_at: float


class TTLCache(Generic[V]):
    """Bounded cache; entries expire *ttl* seconds after insertion.

    When full, the earliest-inserted entry is evicted (insertion order, not
    LRU). Not thread-safe.
    """

    def __init__(
        self,
        max_size: int = 500,
        ttl: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.ttl = ttl
        self._clock = clock
        self._store: dict[str, _Entry[V]] = {}

    def get(self, key: str) -> V | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at > self.ttl:
            del self._store[key]
            return None
        return entry.value

    def set(self, key: str, value: V) -> None:
        if key in self._store:
            del self._store[key]
        elif len(self._store) >= self.max_size:
            oldest = next(iter(self._store))
            del self._store[oldest]
        self._store[key] = _Entry(value=value, stored_at=self._clock())

    def delete(self, key: str) -> bool:
        return self._store.pop(key, None) is not None

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: Any) -> bool:
        return self.get(key) is not None


classification_cache: TTLCache = TTLCache(max_size=500, ttl=10 * 60)
embedding_cache: TTLCache = TTLCache(max_size=1000, ttl=60 * 60)
