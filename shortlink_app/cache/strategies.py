"""
Redirect cache backends (Strategy Pattern): Redis, in-memory, null.

Entries are UrlRecords keyed by the identifier a visitor used (short code or
alias). The cache never decides liveness: callers re-check expiry on every
read, and invalidate both identifiers when a record is deleted.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple

from pydantic import ValidationError as RecordDecodeError

from shortlink_app.schemas.records import UrlRecord

logger = logging.getLogger(__name__)

KEY_PREFIX = "url:"


class RecordCache(ABC):
    """
    Cache-aside store for UrlRecords.

    Methods are async because the Redis backend does network I/O. A cache
    failure is never fatal: reads degrade to a miss, writes are dropped.
    """

    def __init__(self, ttl: int = 3600, prefix: str = KEY_PREFIX):
        self.ttl = ttl
        self.prefix = prefix

    def key(self, identifier: str) -> str:
        return f"{self.prefix}{identifier}"

    @abstractmethod
    async def get(self, identifier: str) -> Optional[UrlRecord]:
        pass

    @abstractmethod
    async def put(self, identifier: str, record: UrlRecord) -> None:
        pass

    @abstractmethod
    async def invalidate(self, *identifiers: str) -> None:
        pass

    @abstractmethod
    async def contains(self, identifier: str) -> bool:
        pass


class RedisRecordCache(RecordCache):
    """
    Redis cache, shared by every app instance behind the load balancer.

    Deleting a short URL on one instance invalidates it for all of them.
    """

    def __init__(self, redis_client, ttl: int = 3600, prefix: str = KEY_PREFIX):
        super().__init__(ttl, prefix)
        self.redis = redis_client

    async def get(self, identifier: str) -> Optional[UrlRecord]:
        try:
            raw = self.redis.get(self.key(identifier))
        except Exception as e:
            logger.warning("Redis get failed for %s: %s", identifier, e)
            return None
        if not raw:
            return None
        try:
            return UrlRecord.model_validate_json(raw)
        except RecordDecodeError:
            logger.warning("Dropping undecodable cache entry for %s", identifier)
            await self.invalidate(identifier)
            return None

    async def put(self, identifier: str, record: UrlRecord) -> None:
        try:
            self.redis.set(self.key(identifier), record.model_dump_json(), ex=self.ttl)
        except Exception as e:
            logger.warning("Redis set failed for %s: %s", identifier, e)

    async def invalidate(self, *identifiers: str) -> None:
        if not identifiers:
            return
        try:
            self.redis.delete(*(self.key(i) for i in identifiers))
        except Exception as e:
            logger.warning("Redis delete failed for %s: %s", identifiers, e)

    async def contains(self, identifier: str) -> bool:
        try:
            return bool(self.redis.exists(self.key(identifier)))
        except Exception as e:
            logger.warning("Redis exists failed for %s: %s", identifier, e)
            return False


class InMemoryRecordCache(RecordCache):
    """
    Process-local cache for development and testing.

    TTL is measured with `clock` (monotonic seconds); expired entries are
    dropped lazily on read.
    """

    def __init__(
        self,
        ttl: int = 3600,
        prefix: str = KEY_PREFIX,
        clock: Callable[[], float] = time.monotonic
    ):
        super().__init__(ttl, prefix)
        self.clock = clock
        self._entries: Dict[str, Tuple[float, UrlRecord]] = {}
        self._lock = threading.Lock()

    async def get(self, identifier: str) -> Optional[UrlRecord]:
        key = self.key(identifier)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            deadline, record = entry
            if self.clock() >= deadline:
                del self._entries[key]
                return None
            return record

    async def put(self, identifier: str, record: UrlRecord) -> None:
        with self._lock:
            self._entries[self.key(identifier)] = (self.clock() + self.ttl, record)

    async def invalidate(self, *identifiers: str) -> None:
        with self._lock:
            for identifier in identifiers:
                self._entries.pop(self.key(identifier), None)

    async def contains(self, identifier: str) -> bool:
        return await self.get(identifier) is not None


class NullRecordCache(RecordCache):
    """Null Object: every read is a miss. Used to disable caching."""

    async def get(self, identifier: str) -> Optional[UrlRecord]:
        return None

    async def put(self, identifier: str, record: UrlRecord) -> None:
        return None

    async def invalidate(self, *identifiers: str) -> None:
        return None

    async def contains(self, identifier: str) -> bool:
        return False
