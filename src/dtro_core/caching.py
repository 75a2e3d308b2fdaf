"""In-process caching of DTROs and existence checks."""

import copy
import logging
import time
from typing import Any, Dict, Optional

from .interfaces.cache import IDtroCache
from .models.dtro import Dtro


logger = logging.getLogger(__name__)


class SimpleCache:
    """
    Simple in-memory cache with a TTL and a size bound.

    When full, the oldest entry is evicted.
    """

    def __init__(self, max_size: int = 1000, ttl: int = 3600):
        """
        Initialize the cache.

        Args:
            max_size: Maximum number of items to cache.
            ttl: Time-to-live for cache entries in seconds.
        """
        self.max_size = max_size
        self.ttl = ttl
        self._cache: Dict[str, tuple[Any, float]] = {}

    def get(self, key: str) -> Optional[Any]:
        """Get a value, or None if it is missing or expired."""
        if key not in self._cache:
            logger.debug(f"Cache miss for key: {key}")
            return None

        value, timestamp = self._cache[key]
        if time.time() - timestamp > self.ttl:
            del self._cache[key]
            logger.debug(f"Cache entry expired for key: {key}")
            return None

        logger.debug(f"Cache hit for key: {key}")
        return value

    def set(self, key: str, value: Any) -> None:
        if key not in self._cache and len(self._cache) >= self.max_size:
            oldest_key = min(self._cache.keys(), key=lambda k: self._cache[k][1])
            del self._cache[oldest_key]

        self._cache[key] = (value, time.time())

    def invalidate(self, key: str) -> None:
        self._cache.pop(key, None)

    def clear(self) -> None:
        self._cache.clear()

    def size(self) -> int:
        return len(self._cache)


def _exists_key(dtro_id: str) -> str:
    return f"exists_{dtro_id}"


class DtroCache(IDtroCache):
    """DTRO cache on top of SimpleCache. Cached records are copied in and out."""

    def __init__(self, cache: Optional[SimpleCache] = None):
        self._cache = cache or SimpleCache()

    def get_dtro(self, dtro_id: str) -> Optional[Dtro]:
        dtro = self._cache.get(str(dtro_id))
        return copy.deepcopy(dtro) if dtro is not None else None

    def cache_dtro(self, dtro: Dtro) -> None:
        if dtro.id is None:
            raise ValueError("Cannot cache a DTRO without an id")
        self._cache.set(str(dtro.id), copy.deepcopy(dtro))

    def get_dtro_exists(self, dtro_id: str) -> Optional[bool]:
        return self._cache.get(_exists_key(dtro_id))

    def cache_dtro_exists(self, dtro_id: str, exists: bool) -> None:
        self._cache.set(_exists_key(dtro_id), exists)

    def invalidate_dtro(self, dtro_id: str) -> None:
        self._cache.invalidate(str(dtro_id))
        self._cache.invalidate(_exists_key(dtro_id))


class NoopDtroCache(IDtroCache):
    """Cache that stores nothing."""

    def get_dtro(self, dtro_id: str) -> Optional[Dtro]:
        return None

    def cache_dtro(self, dtro: Dtro) -> None:
        pass

    def get_dtro_exists(self, dtro_id: str) -> Optional[bool]:
        return None

    def cache_dtro_exists(self, dtro_id: str, exists: bool) -> None:
        pass

    def invalidate_dtro(self, dtro_id: str) -> None:
        pass
