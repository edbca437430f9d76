import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from salestracker.core.config import CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)

_MISSING = object()


def _detached(value: Any) -> Any:
    if isinstance(value, list):
        return list(value)
    if isinstance(value, dict):
        return dict(value)
    return value


def get_cache_key(*args: Any) -> str:
    """
    Builds a cache key from the given parts.

    Args:
        *args: key parts, e.g. ("attendance", "2024-03-03", "2024-03-09")

    Returns:
        str: parts joined with ":" ("attendance:2024-03-03:2024-03-09")
    """
    if not args:
        raise ValueError("Cache key cannot be empty")

    parts = []
    for arg in args:
        if isinstance(arg, dict):
            parts.append("-".join(f"{k}:{v}" for k, v in sorted(arg.items())))
        elif isinstance(arg, (list, tuple, set)):
            parts.append("-".join(str(item) for item in arg))
        else:
            parts.append(str(arg))

    return ":".join(parts)


class ReadCache:
    """
    In-process read-through cache with a fixed time-to-live.

    Entries are evicted lazily when a lookup finds them expired. Concurrent
    misses on the same key are not coalesced: each caller runs its fetcher.

    List and dict results are handed out as shallow copies, so reordering a
    result does not touch the cached value. The records inside are shared.
    """

    def __init__(
        self,
        ttl: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        value, inserted_at = entry
        if self._clock() - inserted_at > self.ttl:
            del self._entries[key]
            logger.debug("Cache entry expired: %s", key)
            return default
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (value, self._clock())

    async def cached_read(self, key: str, fetcher: Callable[[], Awaitable[Any]]) -> Any:
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            logger.debug("Cache hit: %s", key)
            return _detached(value)

        logger.debug("Cache miss: %s", key)
        value = await fetcher()
        self.set(key, value)
        return _detached(value)

    def invalidate(self, key_or_prefix: str) -> int:
        """
        Removes the exact key if it is cached, otherwise every key starting
        with ``key_or_prefix``.

        Returns:
            int: number of removed entries
        """
        if key_or_prefix in self._entries:
            del self._entries[key_or_prefix]
            return 1

        stale = [key for key in self._entries if key.startswith(key_or_prefix)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()


class NullCache:
    """Cache stand-in for backends that are read directly."""

    async def cached_read(self, key: str, fetcher: Callable[[], Awaitable[Any]]) -> Any:
        return await fetcher()

    def invalidate(self, key_or_prefix: str) -> int:
        return 0

    def clear(self) -> None:
        pass


def build_cache(enabled: bool, ttl: Optional[float] = None):
    if not enabled:
        return NullCache()
    return ReadCache(ttl=CACHE_TTL_SECONDS if ttl is None else ttl)
