"""
Redis cache configuration and utilities
Read-through cache of populated wishlist views, keyed by wishlist id
"""

import redis.asyncio as redis
from typing import Optional, Any, Union
import json
from datetime import timedelta, datetime
import logging

from .config import settings

logger = logging.getLogger(__name__)

class RedisCache:
    """Redis cache manager with in-memory fallback"""

    def __init__(self):
        self.redis_client: Optional[redis.Redis] = None
        self._fallback_cache: dict = {}  # In-memory fallback for development
        self._use_redis = False

    async def connect(self):
        """Initialize Redis connection"""
        if not settings.REDIS_URL:
            logger.info("REDIS_URL not set, using in-memory cache")
            return
        try:
            self.redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=settings.REDIS_DECODE_RESPONSES,
                max_connections=settings.REDIS_MAX_CONNECTIONS
            )
            await self.redis_client.ping()
            logger.info("Redis connection established")
            self._use_redis = True
        except Exception as e:
            logger.warning(f"Failed to connect to Redis, using in-memory fallback: {e}")
            self.redis_client = None
            self._use_redis = False

    async def disconnect(self):
        """Close Redis connection"""
        if self.redis_client:
            await self.redis_client.aclose()
            logger.info("Redis connection closed")
        self.redis_client = None
        self._use_redis = False
        self._fallback_cache.clear()

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        try:
            if self._use_redis and self.redis_client:
                value = await self.redis_client.get(key)
                return json.loads(value) if value else None

            cache_item = self._fallback_cache.get(key)
            if cache_item:
                if cache_item.get('expires_at') and datetime.now() > cache_item['expires_at']:
                    del self._fallback_cache[key]
                    return None
                return cache_item['value']
            return None
        except Exception as e:
            logger.error(f"Cache get error: {e}")
            return None

    async def set(
        self,
        key: str,
        value: Any,
        expire: Optional[Union[int, timedelta]] = None
    ) -> bool:
        """Set JSON-serializable value in cache with optional expiration"""
        if isinstance(expire, timedelta):
            expire = int(expire.total_seconds())
        try:
            if self._use_redis and self.redis_client:
                payload = json.dumps(value)
                if expire:
                    return bool(await self.redis_client.setex(key, expire, payload))
                return bool(await self.redis_client.set(key, payload))

            cache_item = {'value': value}
            if expire:
                cache_item['expires_at'] = datetime.now() + timedelta(seconds=expire)
            self._fallback_cache[key] = cache_item
            return True
        except Exception as e:
            logger.error(f"Cache set error: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """Delete key from cache"""
        try:
            if self._use_redis and self.redis_client:
                return bool(await self.redis_client.delete(key))
            return self._fallback_cache.pop(key, None) is not None
        except Exception as e:
            logger.error(f"Cache delete error: {e}")
            return False

# Global cache instance
cache = RedisCache()

def wishlist_cache_key(wishlist_id) -> str:
    """Cache key of a populated wishlist view"""
    return f"wishlist:{wishlist_id}"

async def get_cached_wishlist(wishlist_id) -> Optional[dict]:
    return await cache.get(wishlist_cache_key(wishlist_id))

async def cache_wishlist(wishlist_id, view: dict) -> bool:
    return await cache.set(wishlist_cache_key(wishlist_id), view, settings.CACHE_TTL_SECONDS)

async def invalidate_wishlist(wishlist_id) -> bool:
    """Drop the cached view after any mutation of the wishlist"""
    return await cache.delete(wishlist_cache_key(wishlist_id))
