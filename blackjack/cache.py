"""Time-boxed memoization."""

import time
from typing import Callable, Generic, Hashable, TypeVar

T = TypeVar("T")


class TimedCache(Generic[T]):
    """
    A small key/value cache whose entries expire after ``ttl`` seconds.

    Expired entries are dropped when they are looked up. The clock is
    injectable so tests can move time forward by hand.
    """

    def __init__(self, ttl: float = 300.0, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.ttl = ttl
        self._clock = clock
        self._values: dict[Hashable, T] = {}
        self._stored_at: dict[Hashable, float] = {}

    def _expired(self, key: Hashable) -> bool:
        return self._clock() - self._stored_at[key] >= self.ttl

    def get(self, key: Hashable, default: T | None = None) -> T | None:
        if key not in self._values:
            return default
        if self._expired(key):
            self.invalidate(key)
            return default
        return self._values[key]

    def set(self, key: Hashable, value: T) -> None:
        self._values[key] = value
        self._stored_at[key] = self._clock()

    def get_or_compute(self, key: Hashable, factory: Callable[[], T]) -> T:
        """Return the cached value, or build, store and return a fresh one."""
        if key in self:
            return self._values[key]
        value = factory()
        self.set(key, value)
        return value

    def invalidate(self, key: Hashable) -> None:
        self._values.pop(key, None)
        self._stored_at.pop(key, None)

    def clear(self) -> None:
        self._values.clear()
        self._stored_at.clear()

    def __contains__(self, key: Hashable) -> bool:
        if key not in self._values:
            return False
        if self._expired(key):
            self.invalidate(key)
            return False
        return True

    def __len__(self) -> int:
        for key in [k for k in self._values if self._expired(k)]:
            self.invalidate(key)
        return len(self._values)
