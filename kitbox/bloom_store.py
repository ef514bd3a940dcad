"""Bit stores backing a Bloom filter: an in-memory bitmap and a Redis bitmap."""

from __future__ import annotations

import threading
from typing import Any, Iterable, Protocol, runtime_checkable

__all__ = [
    "DEFAULT_BLOCK_SIZE",
    "REDIS_KEY_FORMAT",
    "BLOOM_SET_SCRIPT",
    "BLOOM_GET_SCRIPT",
    "Store",
    "ResultTypeNotArrayError",
    "MemoryStore",
    "RedisStore",
]

# 128 MiB of bits by default.
DEFAULT_BLOCK_SIZE = 128 * 1024 * 1024

REDIS_KEY_FORMAT = "kit:bloom:{}"

_EXISTED = 1

BLOOM_SET_SCRIPT = """
		local key = KEYS[1]
		local result = {}
		for i = 1, #ARGV ,1 do
			local hash = ARGV[i]
			local r = redis.call("setbit", key, hash, 1)
			table.insert(result, r);
		end
		return result
	"""

BLOOM_GET_SCRIPT = """
		local key = KEYS[1]
		local result = {}
		for i = 1, #ARGV ,1 do
			local hash = ARGV[i]
			local r = redis.call("getbit", key, hash)
			table.insert(result, r);
		end
		return result
	"""


@runtime_checkable
class Store(Protocol):
    """Storage of the bit positions that a Bloom filter sets and tests."""

    def exist(self, key: str, hashes: Iterable[int]) -> bool:
        """Whether every position in ``hashes`` is set under ``key``."""
        ...

    def add(self, key: str, hashes: Iterable[int]) -> None:
        """Set every position in ``hashes`` under ``key``."""
        ...


class ResultTypeNotArrayError(TypeError):
    """Raised when a Redis script answers with something other than an array."""

    def __init__(self) -> None:
        super().__init__("result type is not array")


class MemoryStore:
    """A fixed-size in-process bitmap.

    All keys share the same bitmap; positions wrap modulo its bit count.
    """

    def __init__(self, size: int = 0) -> None:
        if size <= 0:
            size = DEFAULT_BLOCK_SIZE
        self.size = size
        self._bits = bytearray(size)
        self._bit_count = size * 8
        self._lock = threading.Lock()

    def _locate(self, position: int) -> tuple[int, int]:
        position %= self._bit_count
        return position // 8, 1 << (position % 8)

    def exist(self, key: str, hashes: Iterable[int]) -> bool:
        """Whether every position is set; ``key`` does not select a bitmap."""
        with self._lock:
            for position in hashes:
                index, mask = self._locate(position)
                if not self._bits[index] & mask:
                    return False
            return True

    def add(self, key: str, hashes: Iterable[int]) -> None:
        """Set every position; ``key`` does not select a bitmap."""
        with self._lock:
            for position in hashes:
                index, mask = self._locate(position)
                self._bits[index] |= mask


def _is_no_script(exc: Exception) -> bool:
    return "NOSCRIPT" in str(exc) or type(exc).__name__ == "NoScriptError"


class RedisStore:
    """A bitmap kept in Redis, one key per filter or group.

    ``redis`` is a client offering ``script_load(script)`` and
    ``evalsha(sha, numkeys, *keys_and_args)``.
    """

    def __init__(self, redis: Any) -> None:
        self.redis = redis
        self._set_sha = redis.script_load(BLOOM_SET_SCRIPT)
        self._get_sha = redis.script_load(BLOOM_GET_SCRIPT)

    def _eval(self, sha: str, script: str, key: str, hashes: Iterable[int]) -> Any:
        redis_key = REDIS_KEY_FORMAT.format(key)
        args = list(hashes)
        try:
            return self.redis.evalsha(sha, 1, redis_key, *args)
        except Exception as exc:
            if not _is_no_script(exc):
                raise
        self.redis.script_load(script)
        return self.redis.evalsha(sha, 1, redis_key, *args)

    def exist(self, key: str, hashes: Iterable[int]) -> bool:
        """Whether every position is set under ``key``."""
        result = self._eval(self._get_sha, BLOOM_GET_SCRIPT, key, hashes)
        if not isinstance(result, (list, tuple)):
            raise ResultTypeNotArrayError()
        return all(value == _EXISTED for value in result)

    def add(self, key: str, hashes: Iterable[int]) -> None:
        """Set every position under ``key``."""
        self._eval(self._set_sha, BLOOM_SET_SCRIPT, key, hashes)