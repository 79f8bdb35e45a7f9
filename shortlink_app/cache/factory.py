"""
Factory for the redirect cache. One instance per process.
"""

import logging
from enum import Enum

import redis

from .strategies import (
    RecordCache,
    RedisRecordCache,
    InMemoryRecordCache,
    NullRecordCache,
)

logger = logging.getLogger(__name__)


class CacheBackend(Enum):
    REDIS = "redis"
    MEMORY = "memory"
    NULL = "null"


class CacheFactory:
    """
    Builds the cache once and reuses it.
    An unreachable Redis degrades to the in-memory cache rather than failing startup.
    """

    _instance: RecordCache = None

    @classmethod
    def create(cls, backend: CacheBackend, ttl: int = 3600, redis_url: str = "") -> RecordCache:
        if cls._instance is not None:
            return cls._instance

        if backend == CacheBackend.REDIS:
            cls._instance = cls._connect_redis(redis_url, ttl)
        elif backend == CacheBackend.MEMORY:
            cls._instance = InMemoryRecordCache(ttl=ttl)
            logger.info("Using in-memory redirect cache (ttl=%ss)", ttl)
        elif backend == CacheBackend.NULL:
            cls._instance = NullRecordCache(ttl=ttl)
            logger.info("Redirect cache disabled")
        else:
            raise ValueError(f"Unknown cache backend: {backend}")

        return cls._instance

    @staticmethod
    def _connect_redis(redis_url: str, ttl: int) -> RecordCache:
        client = redis.from_url(redis_url, socket_connect_timeout=2, socket_timeout=2)
        try:
            client.ping()
        except redis.RedisError as e:
            logger.warning("Redis at %s unreachable (%s); using in-memory cache", redis_url, e)
            return InMemoryRecordCache(ttl=ttl)
        logger.info("Using Redis redirect cache at %s (ttl=%ss)", redis_url, ttl)
        return RedisRecordCache(client, ttl=ttl)

    @classmethod
    def clear_instance(cls):
        """Forget the cached instance (tests)"""
        cls._instance = None
