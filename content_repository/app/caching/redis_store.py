"""
Redis-backed cache store.

Entries are pickled and written with ``SETEX``. Each dependency key maps to a
Redis set holding the entry keys that depend on it, which is what
``invalidate`` walks. Only point this at a Redis instance you trust, since
entries are unpickled on read.
"""

import hashlib
import math
import pickle
from typing import Any, Callable, Dict, Iterable, Optional

import redis.asyncio as redis

from shared.errors import CacheStoreError
from shared.logging import get_logger
from .models import CacheEntry
from .stores import CacheStore


class RedisCacheStore(CacheStore):
    """Cache store shared by all processes using the same Redis database."""

    name = "redis"

    def __init__(
        self,
        redis_url: str,
        namespace: str = "content",
        *,
        serializer: Callable[[CacheEntry], bytes] = pickle.dumps,
        deserializer: Callable[[bytes], CacheEntry] = pickle.loads,
    ):
        self.redis_url = redis_url
        self.namespace = namespace
        self._serializer = serializer
        self._deserializer = deserializer
        self._redis: Optional[redis.Redis] = None
        self.logger = get_logger("content_repository.cache.redis")

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(self.redis_url)
        return self._redis

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            self.logger.info("Redis cache store closed")

    def _make_key(self, key: str) -> str:
        """Generate the Redis key for a cache key."""
        return f"{self.namespace}:entry:{hashlib.md5(key.encode()).hexdigest()}"

    def _dependency_set_key(self, dependency_key: str) -> str:
        return f"{self.namespace}:dep:{dependency_key.lower()}"

    @staticmethod
    def _ttl(entry: CacheEntry) -> int:
        return max(1, math.ceil(entry.ttl_seconds))

    async def get(self, key: str) -> Optional[CacheEntry]:
        redis_key = self._make_key(key)
        try:
            redis_client = await self._get_redis()
            payload = await redis_client.get(redis_key)
            if payload is None:
                return None

            entry = self._deserializer(payload)
            if entry.use_sliding_expiration:
                ttl = self._ttl(entry)
                async with redis_client.pipeline(transaction=False) as pipe:
                    pipe.expire(redis_key, ttl)
                    for dependency_key in entry.dependency_keys:
                        pipe.expire(self._dependency_set_key(dependency_key), ttl, gt=True)
                    await pipe.execute()
            return entry

        except redis.RedisError as e:
            self.logger.error("Cache get error", key=key, error=str(e))
            raise CacheStoreError(self.name, str(e)) from e

    async def set(self, key: str, entry: CacheEntry) -> None:
        redis_key = self._make_key(key)
        ttl = self._ttl(entry)
        try:
            redis_client = await self._get_redis()
            async with redis_client.pipeline(transaction=True) as pipe:
                pipe.setex(redis_key, ttl, self._serializer(entry))
                for dependency_key in entry.dependency_keys:
                    set_key = self._dependency_set_key(dependency_key)
                    pipe.sadd(set_key, redis_key)
                    # NX covers a fresh set, GT extends a set shared with a longer-lived entry
                    pipe.expire(set_key, ttl, nx=True)
                    pipe.expire(set_key, ttl, gt=True)
                await pipe.execute()

            self.logger.debug("Cached value", key=key, ttl=ttl, dependencies=len(entry.dependency_keys))

        except redis.RedisError as e:
            self.logger.error("Cache set error", key=key, error=str(e))
            raise CacheStoreError(self.name, str(e)) from e

    async def remove(self, key: str) -> bool:
        try:
            redis_client = await self._get_redis()
            return bool(await redis_client.delete(self._make_key(key)))
        except redis.RedisError as e:
            self.logger.error("Cache remove error", key=key, error=str(e))
            raise CacheStoreError(self.name, str(e)) from e

    async def invalidate(self, dependency_keys: Iterable[str]) -> int:
        removed = 0
        try:
            redis_client = await self._get_redis()
            for dependency_key in dependency_keys:
                if not dependency_key:
                    continue
                set_key = self._dependency_set_key(dependency_key)
                members = await redis_client.smembers(set_key)
                if members:
                    removed += await redis_client.delete(*members)
                await redis_client.delete(set_key)

        except redis.RedisError as e:
            self.logger.error("Cache invalidation error", error=str(e))
            raise CacheStoreError(self.name, str(e)) from e

        if removed:
            self.logger.info("Invalidated cache entries", count=removed)
        return removed

    async def clear(self) -> None:
        try:
            redis_client = await self._get_redis()
            keys = [key async for key in redis_client.scan_iter(match=f"{self.namespace}:*")]
            if keys:
                await redis_client.delete(*keys)
                self.logger.info("Cleared cache namespace", namespace=self.namespace, keys_count=len(keys))
        except redis.RedisError as e:
            self.logger.error("Cache clear error", error=str(e))
            raise CacheStoreError(self.name, str(e)) from e

    async def get_stats(self) -> Dict[str, Any]:
        try:
            redis_client = await self._get_redis()
            entries = [key async for key in redis_client.scan_iter(match=f"{self.namespace}:entry:*")]
            dependencies = [key async for key in redis_client.scan_iter(match=f"{self.namespace}:dep:*")]
            return {
                "store": self.name,
                "total_keys": len(entries),
                "dependency_keys": len(dependencies),
                "pattern": f"{self.namespace}:*",
            }
        except redis.RedisError as e:
            self.logger.error("Cache stats error", error=str(e))
            return {"store": self.name, "error": str(e)}
