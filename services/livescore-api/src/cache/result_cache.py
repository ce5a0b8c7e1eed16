"""
Result Cache — Short-lived memoization of provider results.

Used for the live-matches listing so that clients polling every few
seconds do not each cost a provider request. Entries expire on wall-clock
time; an expired entry is never returned.
"""

import time
import structlog
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    expires_at: float


class ResultCache:
    """
    In-process key/value store with per-entry expiry.

    Concurrent misses on the same key may each fetch upstream and put();
    the last write wins. Values must not be mutated after put().
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on a miss or expired entry."""
        now = self._clock()
        self._evict_expired(now)

        entry = self._entries.get(key)
        return entry.value if entry else None

    def put(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            expires_at=self._clock() + ttl_seconds,
        )
        logger.debug("cache_put", key=key, ttl_seconds=ttl_seconds)

    def _evict_expired(self, now: float):
        """Remove entries past their expiry."""
        expired_keys = [
            key for key, entry in self._entries.items() if entry.expires_at <= now
        ]
        for key in expired_keys:
            del self._entries[key]

    def clear(self):
        self._entries.clear()

    @property
    def size(self) -> int:
        """Current number of stored entries (including not-yet-swept expired ones)."""
        return len(self._entries)
