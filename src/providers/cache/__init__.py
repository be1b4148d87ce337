"""Cache repository providers.

MemoryCacheProvider keeps entries in process (per-entry TTL via
cachetools) and is the default.  RedisCacheProvider is selected when
``REDIS_URL`` is configured and shares entries across workers.
"""

from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.cache.redis_cache import RedisCacheProvider

__all__ = ["MemoryCacheProvider", "RedisCacheProvider"]
