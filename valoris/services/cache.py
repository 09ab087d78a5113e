from __future__ import annotations

from collections.abc import Iterator
from typing import Generic, TypeVar

"""Capacity-bounded key/value store.

Used for the analysis result cache and the in-flight request map. Once more
than ``capacity`` keys are held the oldest *inserted* key is evicted. Reads
do not refresh a key's position: this is a memory-growth guard, not an LRU.
"""

__all__ = [
    "BoundedStore",
]

K = TypeVar("K")
V = TypeVar("V")


class BoundedStore(Generic[K, V]):
    def __init__(self, capacity: int = 10) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._data: dict[K, V] = {}

    def get(self, key: K) -> V | None:
        return self._data.get(key)

    def set(self, key: K, value: V) -> None:
        self._data[key] = value
        while len(self._data) > self.capacity:
            oldest = next(iter(self._data))
            del self._data[oldest]

    def pop(self, key: K) -> V | None:
        return self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[K]:
        return iter(self._data)
