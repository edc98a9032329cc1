"""Thread-safe TTL cache for deep-fetched pages."""

import hashlib
import threading
import time
from typing import Any


class InMemoryTTLCache:
    """
    Thread-safe in-memory cache with TTL (Time To Live).

    Keys are the first 16 hex chars of the sha256 of the URL. Once
    ``max_entries`` is reached the entry closest to expiry is evicted.
    """

    def __init__(self, ttl_seconds: int, max_entries: int = 512):
        """
        Initialize cache with TTL.

        Args:
            ttl_seconds: Time to live in seconds for cached entries
            max_entries: Upper bound on stored entries
        """
        self._cache: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._ttl = float(ttl_seconds)
        self._max_entries = max_entries

    def _make_key(self, url: str) -> str:
        return hashlib.sha256(url.strip().encode("utf-8")).hexdigest()[:16]

    def get(self, url: str) -> Any | None:
        """Return the cached value for a URL, or None when missing or expired."""
        key = self._make_key(url)
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if time.monotonic() < expires_at:
                return value
            del self._cache[key]
            return None

    def set(self, url: str, value: Any):
        key = self._make_key(url)
        with self._lock:
            if key not in self._cache and len(self._cache) >= self._max_entries:
                oldest = min(self._cache, key=lambda k: self._cache[k][1])
                del self._cache[oldest]
            self._cache[key] = (value, time.monotonic() + self._ttl)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def clear(self):
        """Clear all cached entries."""
        with self._lock:
            self._cache.clear()
