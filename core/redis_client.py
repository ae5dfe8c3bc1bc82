"""
Redis Cache Client

Async key-value cache on redis-py's asyncio client. Values are strings
(``decode_responses=True``); callers serialize their own payloads.

Errors from Redis propagate to the caller. Cache users that want
fail-open behavior catch them at their own layer.
"""

import logging
import os
from typing import Optional

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class RedisCacheClient:
    """Async Redis client with a default TTL"""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        db: int = 0,
        password: Optional[str] = None,
        default_ttl: int = 300,
        url: Optional[str] = None,
    ):
        self.default_ttl = default_ttl
        redis_url = url or os.getenv("REDIS_URL")
        if redis_url:
            self._redis = redis.from_url(redis_url, decode_responses=True)
        else:
            self._redis = redis.Redis(
                host=host or os.getenv("REDIS_HOST", "localhost"),
                port=port or int(os.getenv("REDIS_PORT", "6379")),
                db=db,
                password=password,
                decode_responses=True,
            )
        logger.info("Redis cache client initialized")

    async def get(self, key: str) -> Optional[str]:
        return await self._redis.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        await self._redis.set(key, value, ex=ttl or self.default_ttl)

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return await self._redis.delete(*keys)

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern (SCAN, not KEYS)"""
        deleted = 0
        batch = []
        async for key in self._redis.scan_iter(match=pattern, count=100):
            batch.append(key)
            if len(batch) >= 100:
                deleted += await self._redis.delete(*batch)
                batch = []
        if batch:
            deleted += await self._redis.delete(*batch)
        return deleted

    async def ping(self) -> bool:
        return bool(await self._redis.ping())

    async def close(self) -> None:
        await self._redis.aclose()
        logger.info("Redis cache client closed")
