"""In-memory TTL cache memoizing expensive spreadsheet reads.

Thread-safe and easy to swap for Redis while keeping the same interface.
Eviction is FIFO: when the store is full, the entry inserted longest ago is
dropped regardless of how recently it was read.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, TypedDict

logger = logging.getLogger(__name__)


class CacheStatus(TypedDict):
    total: int
    valid: int
    expired: int


@dataclass
class CacheEntry:
    """Container for cached values with expiration metadata."""

    key: str
    value: Any
    stored_at: float
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now <= self.expires_at


class ResponseCache:
    """TTL-keyed store with bounded capacity and oldest-first eviction.

    Attributes:
        default_ttl_seconds: TTL applied when ``set`` receives none.
        max_size: Maximum number of entries kept.
    """

    def __init__(
        self,
        default_ttl_seconds: float = 300.0,
        max_size: int = 200,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if default_ttl_seconds <= 0:
            raise ValueError("default_ttl_seconds must be > 0")
        if max_size < 1:
            raise ValueError("max_size must be >= 1")

        self.default_ttl_seconds = default_ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.RLock()

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"ResponseCache(default_ttl_seconds={self.default_ttl_seconds}, "
            f"max_size={self.max_size}, size={len(self._store)})"
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when absent or expired.

        Expired entries are deleted on access, so the store cleans itself even
        without periodic ``cleanup`` calls.
        """

        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                logger.debug("cache.miss", extra={"cache_key": key, "reason": "not_found"})
                return None

            if not entry.is_valid(self._clock()):
                del self._store[key]
                logger.debug("cache.miss", extra={"cache_key": key, "reason": "expired"})
                return None

            logger.debug("cache.hit", extra={"cache_key": key})
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        """Store a value, evicting the oldest-inserted entry when over capacity.

        Args:
            key: Cache key, conventionally a resource identifier.
            value: Value to store.
            ttl_seconds: Optional per-entry TTL; defaults to ``default_ttl_seconds``.
        """

        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        with self._lock:
            now = self._clock()
            # Re-setting a key counts as a fresh insertion for FIFO order
            self._store.pop(key, None)
            self._store[key] = CacheEntry(
                key=key,
                value=value,
                stored_at=now,
                expires_at=now + ttl,
            )

            while len(self._store) > self.max_size:
                evicted_key, _ = self._store.popitem(last=False)
                logger.debug("cache.evict", extra={"cache_key": evicted_key})

            logger.debug(
                "cache.set",
                extra={"cache_key": key, "size": len(self._store), "ttl_s": ttl},
            )

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._store.pop(key, None) is not None

    def delete_pattern(self, prefix: str) -> int:
        """Remove every entry whose key starts with ``prefix``.

        Returns:
            Number of entries removed.
        """

        with self._lock:
            doomed = [key for key in self._store if key.startswith(prefix)]
            for key in doomed:
                del self._store[key]

        if doomed:
            logger.info("cache.invalidated", extra={"prefix": prefix, "removed": len(doomed)})
        return len(doomed)

    def cleanup(self) -> int:
        """Eagerly remove every expired entry and return how many were removed."""

        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._store.items() if not entry.is_valid(now)]
            for key in expired:
                del self._store[key]
        return len(expired)

    def status(self) -> CacheStatus:
        """Report total entries split into valid and expired-but-not-evicted."""

        with self._lock:
            now = self._clock()
            valid = sum(1 for entry in self._store.values() if entry.is_valid(now))
            total = len(self._store)
        return {"total": total, "valid": valid, "expired": total - valid}

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._store)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
