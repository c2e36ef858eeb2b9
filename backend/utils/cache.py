"""
Process-wide in-memory cache with per-key TTL and pattern invalidation.
Assumes a single process; there is no cross-process coherency.
"""
import fnmatch
import logging
import time
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60 * 60


class CacheManager:
    def __init__(self, default_ttl: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}  # key -> (value, expires_at)

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        expires_at = self._clock() + (ttl if ttl is not None else self.default_ttl)
        self._entries[key] = (value, expires_at)

    def get(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def cleanup(self) -> int:
        """Drop expired entries, returning how many were removed"""
        now = self._clock()
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def invalidate_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern such as 'statistics:12:*'"""
        keys = [k for k in self._entries if fnmatch.fnmatchcase(k, pattern)]
        for key in keys:
            del self._entries[key]
        if keys:
            logger.debug(f"Invalidated {len(keys)} cache entries matching {pattern}")
        return len(keys)

    def stats(self) -> dict:
        now = self._clock()
        expired = sum(1 for _, expires_at in self._entries.values() if now >= expires_at)
        return {
            "total_entries": len(self._entries),
            "expired_entries": expired,
            "active_entries": len(self._entries) - expired,
        }


class CacheKeys:
    CAMPUSES = "campuses:all"

    @staticmethod
    def statistics(generation_id: int, view: str) -> str:
        return f"statistics:{generation_id}:{view}"

    @staticmethod
    def generation_pattern(generation_id: int) -> str:
        return f"statistics:{generation_id}:*"


# Shared instance used by the API layer
cache_manager = CacheManager()


def invalidate_after_generation(generation_id: int, cache: Optional[CacheManager] = None) -> int:
    cache = cache or cache_manager
    removed = cache.invalidate_pattern(CacheKeys.generation_pattern(generation_id))
    logger.info(f"Statistics cache invalidated for generation {generation_id} ({removed} entries)")
    return removed


def invalidate_campuses(cache: Optional[CacheManager] = None) -> None:
    (cache or cache_manager).delete(CacheKeys.CAMPUSES)
