"""In-memory TTL cache for issue states."""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """A cached value and when it was fetched."""

    value: V
    fetched_at: float


class StatusCache(Generic[V]):
    """Maps URLs to values that expire after a fixed TTL.

    Expired entries are evicted lazily by get(); prune() sweeps them eagerly.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        """Initialize the cache.

        Args:
            ttl: Time to live in seconds, fixed for the cache's lifetime
            clock: Monotonic time source, injectable for tests
        """
        if ttl <= 0:
            raise ValueError("Cache TTL must be positive")

        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry[V]] = {}

    @property
    def ttl(self) -> float:
        return self._ttl

    def _is_valid(self, entry: CacheEntry[V], now: float) -> bool:
        return (now - entry.fetched_at) < self._ttl

    def get(self, key: str) -> V | None:
        """Get a cached value, or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._is_valid(entry, self._clock()):
            return entry.value

        del self._entries[key]
        return None

    def set(self, key: str, value: V) -> None:
        """Store a value, replacing any existing entry."""
        self._entries[key] = CacheEntry(value=value, fetched_at=self._clock())

    def has(self, key: str) -> bool:
        """Check if key exists and is valid."""
        return self.get(key) is not None

    def remove(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def prune(self) -> int:
        """Remove all expired entries.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [
            key for key, entry in self._entries.items() if not self._is_valid(entry, now)
        ]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def size(self) -> int:
        """Number of stored entries, including expired ones not yet evicted."""
        return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)
