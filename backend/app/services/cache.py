"""
Caching services

Two interchangeable backends with the same get/set/delete/exists/clear API:
  - MemoryCache:  in-process dict of key -> (value, expires_at)
  - CacheService: Redis with JSON serialisation, shared across workers

Callers receive a cache instance (see get_cache) instead of reaching for
module-level state, so expiry behaviour can be tested with a fake clock.
"""
import json
import time
from functools import lru_cache
from typing import Any, Callable, Dict, Optional, Tuple

import redis
from loguru import logger

from app.config import get_settings


class MemoryCache:
    """In-process TTL cache; entries expire lazily on read."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._store: Dict[str, Tuple[Any, float]] = {}

    def get(self, key: str) -> Optional[Any]:
        """Return the value, or None when missing or expired"""
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            self._store.pop(key, None)
            return None
        return value

    def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        """Store value for ttl seconds; a later set for the same key replaces it"""
        self._store[key] = (value, self._clock() + ttl)
        return True

    def delete(self, key: str) -> bool:
        self._store.pop(key, None)
        return True

    def exists(self, key: str) -> bool:
        return self.get(key) is not None

    def clear(self) -> bool:
        self._store.clear()
        return True


def _redis_from_settings(settings) -> "redis.Redis":
    options = dict(decode_responses=True, socket_connect_timeout=5, socket_timeout=10)
    if settings.REDIS_URL:
        return redis.from_url(settings.REDIS_URL, **options)
    return redis.Redis(
        host=settings.REDIS_HOST,
        port=settings.REDIS_PORT,
        db=settings.REDIS_DB,
        **options,
    )


class CacheService:
    """
    Redis-backed cache shared by every API worker.

    Values are stored as JSON under ``<prefix><key>``. Redis being down is
    never fatal: reads miss, writes report False, and the failure is logged.
    """

    def __init__(self, redis_client=None, prefix: str = "strategies:"):
        self.prefix = prefix
        self.redis_client = redis_client if redis_client is not None else _redis_from_settings(get_settings())

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _warn(self, op: str, key: str, exc: Exception) -> None:
        logger.warning(f"Redis {op} failed for {self._key(key)}: {exc}")

    def get(self, key: str) -> Optional[Any]:
        try:
            raw = self.redis_client.get(self._key(key))
        except Exception as e:
            self._warn("get", key, e)
            return None
        return json.loads(raw) if raw else None

    def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        """Store value as JSON; datetimes and other non-JSON types go through str()."""
        try:
            self.redis_client.setex(self._key(key), ttl, json.dumps(value, default=str))
        except Exception as e:
            self._warn("set", key, e)
            return False
        return True

    def delete(self, key: str) -> bool:
        try:
            self.redis_client.delete(self._key(key))
        except Exception as e:
            self._warn("delete", key, e)
            return False
        return True

    def exists(self, key: str) -> bool:
        try:
            return bool(self.redis_client.exists(self._key(key)))
        except Exception as e:
            self._warn("exists", key, e)
            return False

    def clear(self) -> bool:
        """Delete every key under this service's prefix"""
        try:
            keys = list(self.redis_client.scan_iter(match=f"{self.prefix}*"))
            if keys:
                self.redis_client.delete(*keys)
        except Exception as e:
            self._warn("clear", "*", e)
            return False
        return True


@lru_cache()
def get_cache():
    """Process-wide cache backend selected by CACHE_BACKEND."""
    backend = get_settings().CACHE_BACKEND.lower()
    if backend == "redis":
        logger.info("Using Redis cache backend")
        return CacheService()
    if backend != "memory":
        logger.warning(f"Unknown CACHE_BACKEND '{backend}', falling back to memory")
    return MemoryCache()
