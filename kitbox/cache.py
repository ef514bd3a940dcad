"""A thread-safe in-memory cache with per-entry expiry and cost-bounded eviction."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Hashable, TypeVar

__all__ = [
    "DEFAULT_NUM_COUNTERS",
    "DEFAULT_MAX_COST",
    "DEFAULT_BUFFER_ITEMS",
    "NO_EXPIRY",
    "CacheOptions",
    "Option",
    "Cache",
    "TypedCache",
    "with_num_counters",
    "with_max_cost",
    "with_buffer_items",
    "new_cache",
    "as_typed_cache",
]

DEFAULT_NUM_COUNTERS = 10_000_000
DEFAULT_MAX_COST = 1 << 30
DEFAULT_BUFFER_ITEMS = 64

# Remaining time reported for entries that never expire.
NO_EXPIRY = -1

T = TypeVar("T")


@dataclass
class CacheOptions:
    """Sizing parameters of a cache.

    ``num_counters`` is the number of keys tracked for access frequency,
    ``max_cost`` the total cost allowed (each entry costs 1), and
    ``buffer_items`` the size of the write buffer.
    """

    num_counters: int = DEFAULT_NUM_COUNTERS
    max_cost: int = DEFAULT_MAX_COST
    buffer_items: int = DEFAULT_BUFFER_ITEMS

    def validate(self) -> None:
        """Raise ``ValueError`` if any parameter is unusable."""
        if self.num_counters <= 0:
            raise ValueError("NumCounters can't be zero")
        if self.max_cost <= 0:
            raise ValueError("MaxCost can't be zero")
        if self.buffer_items <= 0:
            raise ValueError("BufferItems can't be zero")


Option = Callable[[CacheOptions], None]


def with_num_counters(num_counters: int) -> Option:
    """Option setting the number of frequency counters."""

    def apply(options: CacheOptions) -> None:
        options.num_counters = num_counters

    return apply


def with_max_cost(max_cost: int) -> Option:
    """Option setting the maximum total cost."""

    def apply(options: CacheOptions) -> None:
        options.max_cost = max_cost

    return apply


def with_buffer_items(buffer_items: int) -> Option:
    """Option setting the write buffer size."""

    def apply(options: CacheOptions) -> None:
        options.buffer_items = buffer_items

    return apply


@dataclass
class _Entry:
    value: Any
    expires_at: float | None


class Cache:
    """In-memory cache; entries are evicted least-frequently-used first.

    Times to live are given in seconds. All operations are thread-safe.
    """

    def __init__(self, options: CacheOptions | None = None) -> None:
        self.options = options if options is not None else CacheOptions()
        self.options.validate()
        self._entries: dict[Hashable, _Entry] = {}
        self._hits: dict[Hashable, int] = {}
        self._lock = threading.Lock()
        self._closed = False

    def __enter__(self) -> Cache:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __len__(self) -> int:
        with self._lock:
            now = time.monotonic()
            return sum(1 for entry in self._entries.values() if not self._expired(entry, now))

    @property
    def closed(self) -> bool:
        """Whether ``close`` has been called."""
        return self._closed

    @staticmethod
    def _expired(entry: _Entry, now: float) -> bool:
        return entry.expires_at is not None and entry.expires_at <= now

    def _lookup(self, key: Hashable, now: float) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry, now):
            self._remove(key)
            return None
        if len(self._hits) < self.options.num_counters or key in self._hits:
            self._hits[key] = self._hits.get(key, 0) + 1
        return entry

    def _remove(self, key: Hashable) -> None:
        self._entries.pop(key, None)
        self._hits.pop(key, None)

    def _make_room(self, now: float) -> None:
        for key in [k for k, e in self._entries.items() if self._expired(e, now)]:
            self._remove(key)
        while len(self._entries) >= self.options.max_cost:
            victim = min(self._entries, key=lambda k: self._hits.get(k, 0))
            self._remove(victim)

    def get(self, key: Hashable) -> tuple[Any, bool]:
        """Return ``(value, True)`` for a live entry, else ``(None, False)``."""
        with self._lock:
            if self._closed:
                return None, False
            entry = self._lookup(key, time.monotonic())
            if entry is None:
                return None, False
            return entry.value, True

    def get_with_ttl(self, key: Hashable) -> tuple[Any, bool, float]:
        """Return ``(value, found, remaining)``.

        ``remaining`` is ``NO_EXPIRY`` for entries that never expire and 0
        when the entry is missing or expired.
        """
        with self._lock:
            if self._closed:
                return None, False, 0
            now = time.monotonic()
            entry = self._lookup(key, now)
            if entry is None:
                return None, False, 0
            if entry.expires_at is None:
                return entry.value, True, NO_EXPIRY
            return entry.value, True, entry.expires_at - now

    def set(self, key: Hashable, value: Any) -> bool:
        """Store a value that never expires; return whether it was stored."""
        return self.set_with_ttl(key, value, 0)

    def set_with_ttl(self, key: Hashable, value: Any, ttl: float) -> bool:
        """Store a value expiring after ``ttl`` seconds; ``ttl <= 0`` never expires."""
        with self._lock:
            if self._closed:
                return False
            now = time.monotonic()
            expires_at = now + ttl if ttl > 0 else None
            if key not in self._entries:
                self._make_room(now)
            self._entries[key] = _Entry(value, expires_at)
            return True

    def delete(self, key: Hashable) -> None:
        """Remove ``key``; missing keys are ignored."""
        with self._lock:
            self._remove(key)

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._entries.clear()
            self._hits.clear()

    def close(self) -> None:
        """Release all entries; later writes fail and reads find nothing."""
        with self._lock:
            self._closed = True
            self._entries.clear()
            self._hits.clear()


class TypedCache(Generic[T]):
    """A view of a cache that only yields values of one type."""

    def __init__(self, cache: Cache, value_type: type[T]) -> None:
        self.cache = cache
        self.value_type = value_type

    def _check(self, value: Any) -> None:
        if not isinstance(value, self.value_type):
            raise TypeError(
                f"expected {self.value_type.__name__}, got {type(value).__name__}"
            )

    def get(self, key: Hashable) -> tuple[T | None, bool]:
        """Like ``Cache.get``, but a value of another type counts as missing."""
        value, found = self.cache.get(key)
        if found and isinstance(value, self.value_type):
            return value, True
        return None, False

    def get_with_ttl(self, key: Hashable) -> tuple[T | None, bool, float]:
        """Like ``Cache.get_with_ttl``, but a value of another type counts as missing."""
        value, found, remaining = self.cache.get_with_ttl(key)
        if found and isinstance(value, self.value_type):
            return value, True, remaining
        return None, False, 0

    def set(self, key: Hashable, value: T) -> bool:
        """Store a value that never expires; raise ``TypeError`` on a wrong type."""
        self._check(value)
        return self.cache.set(key, value)

    def set_with_ttl(self, key: Hashable, value: T, ttl: float) -> bool:
        """Store a value with a time to live; raise ``TypeError`` on a wrong type."""
        self._check(value)
        return self.cache.set_with_ttl(key, value, ttl)

    def delete(self, key: Hashable) -> None:
        """Remove ``key`` from the underlying cache."""
        self.cache.delete(key)

    def clear(self) -> None:
        """Clear the underlying cache."""
        self.cache.clear()

    def close(self) -> None:
        """Close the underlying cache."""
        self.cache.close()


def new_cache(*options: Option) -> Cache:
    """Create a cache with the defaults adjusted by ``options``."""
    settings = CacheOptions()
    for option in options:
        option(settings)
    return Cache(settings)


def as_typed_cache(cache: Cache, value_type: type[T]) -> TypedCache[T]:
    """Wrap ``cache`` so that it stores and yields only ``value_type`` values."""
    return TypedCache(cache, value_type)