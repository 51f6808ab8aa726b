"""
Named caches shared across the process.

Provides a single registry of caches so that all of them can be cleared
together (for example between tests). Caches without a TTL never expire;
TTL caches use cachetools TTLCache for automatic expiration.
"""
import logging
import math
import threading

import cachetools

logger = logging.getLogger(__name__)


class Cache:
    """Cache registry for the objcursor module.

    Thread-safe singleton. Creation of a named cache is locked; reads and
    writes into a cache are left to its owner.
    """

    _instance = None
    _caches: dict[str, cachetools.Cache] = {}
    _lock = threading.RLock()

    @classmethod
    def get_instance(cls) -> 'Cache':
        """Get singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def get_cache(self, name: str, maxsize: float = math.inf,
                  ttl: int | None = None) -> cachetools.Cache:
        """Get or create a cache with the given name.

        Args:
            name: Name of the cache
            maxsize: Maximum cache size (unbounded by default)
            ttl: Time-to-live in seconds, or None for entries that never expire

        Returns
            Cache instance
        """
        if name not in self._caches:
            with self._lock:
                if name not in self._caches:
                    if ttl is None:
                        self._caches[name] = cachetools.Cache(maxsize=maxsize)
                    else:
                        self._caches[name] = cachetools.TTLCache(maxsize=maxsize, ttl=ttl)
                    logger.debug(f'Created cache {name}')
        return self._caches[name]

    def clear_all(self) -> None:
        """Clear all managed caches."""
        with self._lock:
            for cache in self._caches.values():
                cache.clear()

    def clear_cache(self, name: str) -> None:
        """Clear a specific cache by name."""
        with self._lock:
            if name in self._caches:
                self._caches[name].clear()


def get_column_cache() -> cachetools.Cache:
    """Get the process-wide cache of discovered columns, keyed by element type.
    """
    return Cache.get_instance().get_cache('columns')
