"""A process-wide default cache, initialised once and reached through module functions."""

from __future__ import annotations

import threading
from typing import Any, Hashable

from kitbox.cache import Cache, Option, new_cache

__all__ = [
    "init_cache",
    "reset_cache",
    "get",
    "get_with_ttl",
    "set",
    "set_with_ttl",
    "delete",
    "clear",
    "close",
]

_default_cache: Cache | None = None
_initialized = False
_init_lock = threading.Lock()


def init_cache(*options: Option) -> None:
    """Create the default cache on the first call; later calls do nothing.

    An error from the first call is raised, and the cache stays absent.
    """
    global _default_cache, _initialized
    with _init_lock:
        if _initialized:
            return
        _initialized = True
        _default_cache = new_cache(*options)


def reset_cache() -> None:
    """Close and forget the default cache so that ``init_cache`` runs again."""
    global _default_cache, _initialized
    with _init_lock:
        if _default_cache is not None:
            _default_cache.close()
        _default_cache = None
        _initialized = False


def get(key: Hashable) -> tuple[Any, bool]:
    """Look up ``key``; ``(None, False)`` if absent or not initialised."""
    if _default_cache is None:
        return None, False
    return _default_cache.get(key)


def get_with_ttl(key: Hashable) -> tuple[Any, bool, float]:
    """Look up ``key`` with its remaining time; ``(None, False, 0)`` if absent."""
    if _default_cache is None:
        return None, False, 0
    return _default_cache.get_with_ttl(key)


def set(key: Hashable, value: Any) -> bool:  # noqa: A001
    """Store a value that never expires; ``False`` if not initialised."""
    if _default_cache is None:
        return False
    return _default_cache.set(key, value)


def set_with_ttl(key: Hashable, value: Any, ttl: float) -> bool:
    """Store a value expiring after ``ttl`` seconds; ``False`` if not initialised."""
    if _default_cache is None:
        return False
    return _default_cache.set_with_ttl(key, value, ttl)


def delete(key: Hashable) -> None:
    """Remove ``key``; ignored if not initialised."""
    if _default_cache is not None:
        _default_cache.delete(key)


def clear() -> None:
    """Remove every entry; ignored if not initialised."""
    if _default_cache is not None:
        _default_cache.clear()


def close() -> None:
    """Close the default cache; ignored if not initialised."""
    if _default_cache is not None:
        _default_cache.close()