"""
TTL cache for completion suggestions.

Keys are "stores", "files", "models" and "docs:<store reference>". An
expired entry is indistinguishable from a missing one; expired entries are
left in place until overwritten or cleared.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable

from config import DEFAULT_CACHE_TTL_SECONDS


@dataclass
class CacheEntry:
    values: list[str]
    expires_at: float


class TTLCache:
    """
    Thread-safe string-list cache with a single TTL.

    Args:
        ttl: Lifetime in seconds. Values <= 0 mean the 300s default.
        clock: Monotonic time source (injectable for tests)
    """

    def __init__(self, ttl: float = DEFAULT_CACHE_TTL_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        if ttl <= 0:
            ttl = DEFAULT_CACHE_TTL_SECONDS
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> tuple[list[str] | None, bool]:
        """Return (values, True) while fresh, (None, False) otherwise."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._clock() >= entry.expires_at:
                return None, False
            return list(entry.values), True

    def set(self, key: str, values: list[str]) -> None:
        """Store values, replacing any previous entry and resetting its expiry."""
        with self._lock:
            self._entries[key] = CacheEntry(list(values), self._clock() + self.ttl)

    def clear(self) -> None:
        with self._lock:
            self._entries = {}
