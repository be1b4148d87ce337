"""Redis-backed cache provider.

Entries are stored as JSON strings with ``SETEX`` so the store expires them
on its own.  This is the shared repository for multi-worker deployments:
every worker reads and writes the same keys, and concurrent writers of one
key resolve last-write-wins.
"""

from __future__ import annotations

import json
from typing import Any

import redis.asyncio as redis
import structlog

from src.interfaces.cache_provider import ICacheProvider
from src.utils.errors import CacheStoreError

logger = structlog.get_logger(logger_name=__name__)


class RedisCacheProvider(ICacheProvider):
    """Cache repository backed by a Redis server.

    Parameters
    ----------
    client:
        An ``redis.asyncio.Redis`` client.  Use :meth:`from_url` to build one
        from a connection URL.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> RedisCacheProvider:
        # Connections are opened lazily on first command.
        return cls(redis.Redis.from_url(url, decode_responses=True))

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> dict[str, Any] | None:
        try:
            raw = await self._client.get(key)
        except redis.RedisError as exc:
            raise CacheStoreError(
                message=f"GET {key} failed: {exc}", provider_name="redis"
            ) from exc
        if raw is None:
            logger.debug("cache_miss", key=key)
            return None
        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise CacheStoreError(
                message=f"GET {key} returned non-JSON data", provider_name="redis"
            ) from exc
        if not isinstance(value, dict):
            raise CacheStoreError(
                message=f"GET {key} returned a non-object value", provider_name="redis"
            )
        logger.debug("cache_hit", key=key)
        return value

    async def set(self, key: str, value: dict[str, Any], ttl: int | None = None) -> None:
        data = json.dumps(value, ensure_ascii=False)
        try:
            if ttl is None:
                await self._client.set(key, data)
            else:
                await self._client.setex(key, max(int(ttl), 1), data)
        except redis.RedisError as exc:
            raise CacheStoreError(
                message=f"SET {key} failed: {exc}", provider_name="redis"
            ) from exc
        logger.debug("cache_set", key=key, ttl=ttl)

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except redis.RedisError as exc:
            raise CacheStoreError(
                message=f"DEL {key} failed: {exc}", provider_name="redis"
            ) from exc

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self._client.exists(key))
        except redis.RedisError as exc:
            raise CacheStoreError(
                message=f"EXISTS {key} failed: {exc}", provider_name="redis"
            ) from exc

    def get_provider_name(self) -> str:
        return "redis"

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except redis.RedisError:
            return False

    async def close(self) -> None:
        await self._client.aclose()
