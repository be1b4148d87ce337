"""In-memory cache provider using cachetools.TLRUCache.

Per-entry TTLs are honoured (each KPI entry expires after its own
consistency window), which the uniform-TTL ``TTLCache`` cannot do.
Suitable for development and single-process deployments; multi-worker
deployments should use :class:`RedisCacheProvider` so that every worker
shares one cache.
"""

from __future__ import annotations

import copy
import math
import time
from collections.abc import Callable
from typing import Any

import structlog
from cachetools import TLRUCache

from src.interfaces.cache_provider import ICacheProvider

logger = structlog.get_logger(logger_name=__name__)

# (value, ttl_seconds): the ttl travels with the value so the cache's
# time-to-use function can read it.
_Stored = tuple[dict[str, Any], int | None]


def _time_to_use(_key: str, stored: _Stored, now: float) -> float:
    ttl = stored[1]
    return math.inf if ttl is None else now + ttl


class MemoryCacheProvider(ICacheProvider):
    """In-process TLRU cache.

    Parameters
    ----------
    max_size:
        Maximum number of entries before the least-recently-used one is evicted.
    timer:
        Clock used for expiry; defaults to ``time.monotonic``.  Tests pass a
        fake clock to step past TTLs.
    """

    def __init__(
        self,
        max_size: int = 10_000,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache: TLRUCache[str, _Stored] = TLRUCache(
            maxsize=max_size, ttu=_time_to_use, timer=timer
        )

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> dict[str, Any] | None:
        """Return a copy of the value for *key*, or ``None`` if missing/expired."""
        stored = self._cache.get(key)
        if stored is None:
            logger.debug("cache_miss", key=key)
            return None
        logger.debug("cache_hit", key=key)
        return copy.deepcopy(stored[0])

    async def set(self, key: str, value: dict[str, Any], ttl: int | None = None) -> None:
        """Store a copy of *value*; callers never share state with the cache."""
        if ttl is not None and ttl <= 0:
            self._cache.pop(key, None)
            return
        self._cache[key] = (copy.deepcopy(value), ttl)
        logger.debug("cache_set", key=key, ttl=ttl)

    async def delete(self, key: str) -> None:
        self._cache.pop(key, None)
        logger.debug("cache_delete", key=key)

    async def exists(self, key: str) -> bool:
        return key in self._cache

    def get_provider_name(self) -> str:
        return "memory"
