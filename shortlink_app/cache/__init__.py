from .strategies import RecordCache, RedisRecordCache, InMemoryRecordCache, NullRecordCache
from .factory import CacheFactory, CacheBackend

__all__ = [
    "RecordCache",
    "RedisRecordCache",
    "InMemoryRecordCache",
    "NullRecordCache",
    "CacheFactory",
    "CacheBackend",
]
