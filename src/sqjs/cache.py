"""
Content addressed caches.

:class:`ContentCache` is a size bounded mapping with optional time to live.
Recency order is kept by the underlying ordered dict: a hit moves the entry to
the end, eviction drops from the front. It is a performance optimization only,
hash collisions in :func:`compute_hash` are accepted.
"""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Iterator, Optional, TypeVar, TYPE_CHECKING

if TYPE_CHECKING:
    from sqjs.model import ValidationResult

log = logging.getLogger(__name__)

T = TypeVar("T")

FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def compute_hash(text: str) -> str:
    """FNV-1a 32-bit hash of text, rendered as base36 string.

    :param text: content to hash
    :return: compact hash string
    """
    value = FNV_OFFSET_BASIS
    for char in text:
        value ^= ord(char)
        value = (value * FNV_PRIME) & 0xFFFFFFFF
    return _to_base36(value)


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    value: T
    timestamp: float


class ContentCache(Generic[T]):
    """Bounded key to value store with LRU eviction and optional TTL."""

    def __init__(
        self,
        max_size: int,
        ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        :param max_size: maximum number of entries
        :param ttl: entry lifetime in seconds, None means entries never expire
        :param clock: time source, injectable for tests
        """
        if max_size < 1:
            raise ValueError(f"Cache size must be positive, got {max_size}")
        self.max_size = max_size
        self.ttl = ttl
        self._clock = clock
        self._entries: OrderedDict[Hashable, CacheEntry[T]] = OrderedDict()

    def _expired(self, entry: CacheEntry[T], now: float) -> bool:
        return self.ttl is not None and now - entry.timestamp > self.ttl

    def get(self, key: Hashable) -> Optional[T]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry, self._clock()):
            log.debug(f"Cache entry {key} expired")
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return entry.value

    def set(self, key: Hashable, value: T) -> None:
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.max_size:
            oldest, _ = self._entries.popitem(last=False)
            log.debug(f"Cache full ({self.max_size}), evicted {oldest}")
        self._entries[key] = CacheEntry(value=value, timestamp=self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def cleanup(self) -> int:
        """Remove all expired entries.

        :return: number of removed entries
        """
        now = self._clock()
        stale = [key for key, entry in self._entries.items() if self._expired(entry, now)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def keys(self) -> Iterator[Hashable]:
        """Keys from least to most recently used."""
        return iter(list(self._entries.keys()))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries


class ValidationCache:
    """Validation results keyed by hash of diagram source."""

    def __init__(
        self,
        max_size: int = 1000,
        ttl: Optional[float] = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._cache: ContentCache["ValidationResult"] = ContentCache(max_size, ttl, clock)

    def get(self, source: str) -> Optional["ValidationResult"]:
        return self._cache.get(compute_hash(source))

    def set(self, source: str, result: "ValidationResult") -> None:
        self._cache.set(compute_hash(source), result)

    def clear(self) -> None:
        self._cache.clear()

    def cleanup(self) -> int:
        return self._cache.cleanup()

    def size(self) -> int:
        return len(self._cache)
