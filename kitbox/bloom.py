"""A Bloom filter over a pluggable bit store, with optional named groups."""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from typing import Any, Callable

from kitbox.bloom_store import MemoryStore, RedisStore, Store
from kitbox.murmur3 import sum128

__all__ = [
    "DEFAULT_NAME",
    "DEFAULT_EXPECTED_ELEMENTS",
    "DEFAULT_FALSE_POSITIVE_RATE",
    "reserved_names",
    "BloomSettings",
    "Option",
    "BloomError",
    "BloomNameEmptyError",
    "BloomNameRepeatedError",
    "BloomFalseProbabilityThanOneError",
    "BloomFalseProbabilityNegativeError",
    "Bloom",
    "new_bloom",
    "with_name",
    "with_store",
    "with_redis",
    "with_logger",
    "with_expected_elements",
    "with_false_positive_rate",
]

DEFAULT_NAME = "default"
DEFAULT_EXPECTED_ELEMENTS = 65536
DEFAULT_FALSE_POSITIVE_RATE = 0.01

_MASK64 = (1 << 64) - 1

# Names that new filters may not take.
reserved_names: set[str] = set()

_default_store: MemoryStore | None = None
_default_store_lock = threading.Lock()


def _shared_default_store() -> MemoryStore:
    global _default_store
    with _default_store_lock:
        if _default_store is None:
            _default_store = MemoryStore(0)
        return _default_store


class BloomError(ValueError):
    """Base class of Bloom filter configuration errors."""


class BloomNameEmptyError(BloomError):
    """The filter name is empty or blank."""

    def __init__(self) -> None:
        super().__init__("bloom: bloom name can't be empty")


class BloomNameRepeatedError(BloomError):
    """The filter name is already taken."""

    def __init__(self) -> None:
        super().__init__("bloom: bloom name can't repeated")


class BloomFalseProbabilityThanOneError(BloomError):
    """The false positive rate is greater than one."""

    def __init__(self) -> None:
        super().__init__("bloom: bloom false probability can't than 1")


class BloomFalseProbabilityNegativeError(BloomError):
    """The false positive rate is negative."""

    def __init__(self) -> None:
        super().__init__("bloom: bloom false probability can't be negative")


@dataclass
class BloomSettings:
    """Configuration that options adjust before a filter is built."""

    name: str = DEFAULT_NAME
    store: Store | None = None
    logger: Any = field(default_factory=lambda: logging.getLogger("kitbox.bloom"))
    expected_elements: int = DEFAULT_EXPECTED_ELEMENTS
    false_positive_rate: float = DEFAULT_FALSE_POSITIVE_RATE


Option = Callable[[BloomSettings], None]


class Bloom:
    """A Bloom filter: ``False`` from a lookup is certain, ``True`` may be wrong."""

    def __init__(
        self,
        name: str,
        store: Store,
        logger: Any,
        expected_elements: int,
        false_positive_rate: float,
        bits: int,
        hash_count: int,
    ) -> None:
        self.name = name
        self.store = store
        self.logger = logger
        self.expected_elements = expected_elements
        self.false_positive_rate = false_positive_rate
        self.bits = bits
        self.hash_count = hash_count

    def hashes(self, value: str) -> list[int]:
        """The ``hash_count`` bit positions of ``value``, each below ``bits``."""
        hash1, hash2 = sum128(value)
        return [((hash1 + i * hash2 + i * i) & _MASK64) % self.bits for i in range(self.hash_count)]

    def _group_key(self, group: str) -> str:
        return f"{self.name}:{group}"

    def contain(self, value: str) -> bool:
        """Whether ``value`` may have been added."""
        return self.store.exist(self.name, self.hashes(value))

    def put(self, value: str) -> None:
        """Add ``value``."""
        self.store.add(self.name, self.hashes(value))

    def group_contain(self, group: str, value: str) -> bool:
        """Whether ``value`` may have been added to ``group``."""
        return self.store.exist(self._group_key(group), self.hashes(value))

    def group_put(self, group: str, value: str) -> None:
        """Add ``value`` to ``group``."""
        self.store.add(self._group_key(group), self.hashes(value))


def _round_half_away(value: float) -> float:
    return math.floor(value + 0.5) if value >= 0 else math.ceil(value - 0.5)


def new_bloom(*options: Option) -> Bloom:
    """Build a filter sized for the expected element count and false positive rate."""
    settings = BloomSettings()
    for option in options:
        option(settings)

    if not settings.name.strip():
        raise BloomNameEmptyError()
    if settings.name in reserved_names:
        raise BloomNameRepeatedError()
    if settings.false_positive_rate > 1:
        raise BloomFalseProbabilityThanOneError()
    if settings.false_positive_rate < 0:
        raise BloomFalseProbabilityNegativeError()

    n = float(settings.expected_elements)
    ln2 = math.log(2)
    optimal_bits = -n * math.log(settings.false_positive_rate) / (ln2 * ln2)
    bits = int(optimal_bits)
    hash_count = int(max(1.0, _round_half_away(optimal_bits / n * ln2)))

    store = settings.store if settings.store is not None else _shared_default_store()
    return Bloom(
        name=settings.name,
        store=store,
        logger=settings.logger,
        expected_elements=settings.expected_elements,
        false_positive_rate=settings.false_positive_rate,
        bits=bits,
        hash_count=hash_count,
    )


def with_name(name: str) -> Option:
    """Option setting the filter name."""

    def apply(settings: BloomSettings) -> None:
        settings.name = name

    return apply


def with_store(store: Store) -> Option:
    """Option setting the bit store."""

    def apply(settings: BloomSettings) -> None:
        settings.store = store

    return apply


def with_redis(redis: Any) -> Option:
    """Option storing the bits in Redis through ``redis``; client errors propagate."""

    def apply(settings: BloomSettings) -> None:
        settings.store = RedisStore(redis)

    return apply


def with_logger(logger: Any) -> Option:
    """Option setting the logger."""

    def apply(settings: BloomSettings) -> None:
        settings.logger = logger

    return apply


def with_expected_elements(n: int) -> Option:
    """Option setting the expected number of elements."""

    def apply(settings: BloomSettings) -> None:
        settings.expected_elements = n

    return apply


def with_false_positive_rate(p: float) -> Option:
    """Option setting the wanted false positive rate."""

    def apply(settings: BloomSettings) -> None:
        settings.false_positive_rate = p

    return apply