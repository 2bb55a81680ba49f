"""
Caller-side cache for loaded agent records.

Uses diskcache for SQLite-based persistent caching. The record store itself
never caches; AttributionService owns one RecordCache and invalidates it
explicitly when it writes.
"""

import hashlib
from pathlib import Path
from typing import Any, Iterable, Optional

from diskcache import Cache

from .logging_config import get_logger

logger = get_logger(__name__)


class RecordCache:
    """
    Short-lived cache keyed by the shard files a load depends on.

    Features:
    - Keys change whenever a shard's mtime or size changes
    - TTL-based expiration bounds staleness for everything else
    - Thread-safe operations
    """

    def __init__(
        self,
        cache_dir: str = ".agent-blame/cache",
        ttl_seconds: int = 5,
        enabled: bool = True,
    ):
        """
        Initialize cache.

        Args:
            cache_dir: Directory for cache storage
            ttl_seconds: Time-to-live in seconds
            enabled: Whether caching is enabled
        """
        self.enabled = enabled
        self.ttl_seconds = ttl_seconds

        if self.enabled:
            self.cache = Cache(str(cache_dir))
            logger.debug(f"Record cache initialized at {cache_dir} with TTL={ttl_seconds}s")
        else:
            self.cache = None
            logger.debug("Record cache disabled")

    @staticmethod
    def key_for(namespace: str, paths: Iterable[Path]) -> str:
        """Cache key from a namespace plus the stat of each dependency."""
        parts = [namespace]
        for path in paths:
            try:
                stat = path.stat()
                parts.append(f"{path}:{stat.st_mtime_ns}:{stat.st_size}")
            except OSError:
                parts.append(f"{path}:missing")
        return hashlib.sha256("|".join(parts).encode()).hexdigest()

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Returns:
            Cached value or None if not found/expired
        """
        if not self.enabled or self.cache is None:
            return None

        try:
            value = self.cache.get(key)
            if value is not None:
                logger.debug(f"Cache hit: {key[:16]}...")
            else:
                logger.debug(f"Cache miss: {key[:16]}...")
            return value
        except Exception as e:
            logger.warning(f"Cache get failed: {e}")
            return None

    def set(self, key: str, value: Any) -> None:
        if not self.enabled or self.cache is None:
            return

        try:
            self.cache.set(key, value, expire=self.ttl_seconds)
            logger.debug(f"Cache set: {key[:16]}...")
        except Exception as e:
            logger.warning(f"Cache set failed: {e}")

    def invalidate(self, key: str) -> bool:
        """Drop one entry. Returns True if it was present."""
        if not self.enabled or self.cache is None:
            return False

        try:
            return bool(self.cache.delete(key))
        except Exception as e:
            logger.warning(f"Cache invalidate failed: {e}")
            return False

    def clear(self) -> None:
        """Clear all cache entries."""
        if not self.enabled or self.cache is None:
            return

        try:
            self.cache.clear()
            logger.debug("Record cache cleared")
        except Exception as e:
            logger.warning(f"Cache clear failed: {e}")

    def close(self) -> None:
        if self.cache is not None:
            self.cache.close()
