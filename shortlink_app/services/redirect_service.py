"""
Redirect Service

Resolves an identifier to its original URL and records the click before the
caller issues the redirect.
"""

from datetime import datetime
from typing import Callable, Optional

from shortlink_app.cache.strategies import RecordCache
from shortlink_app.exceptions import NotFound
from shortlink_app.schemas.records import UrlRecord, is_expired, utc_now
from shortlink_app.services.click_recorder import ClickRecorder
from shortlink_app.services.url_service import get_live_record
from shortlink_app.storage.strategies import UrlStore


class RedirectResolver:
    """
    Lookup, validate, record, return - in that order.

    A click is never recorded for a missing or expired identifier. Record
    lookups go through the cache (cache-aside); expiry is always checked
    against the current time after the read, so a cached record cannot outlive
    its expiry.
    """

    def __init__(
        self,
        store: UrlStore,
        recorder: ClickRecorder,
        cache: Optional[RecordCache] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.store = store
        self.recorder = recorder
        self.cache = cache
        self.clock = clock

    async def resolve_and_record(
        self,
        identifier: str,
        ip_address: str,
        user_agent: Optional[str] = None,
        referrer: Optional[str] = None
    ) -> str:
        """
        Raises:
            NotFound: identifier is missing, expired or was deleted meanwhile
            PersistenceError: the click could not be stored
        """
        record = await self._find_live_record(identifier)

        try:
            self.recorder.record_click(record, ip_address, user_agent, referrer)
        except NotFound:
            # Deleted after we read it (possibly a stale cache entry)
            if self.cache:
                await self.cache.invalidate(identifier)
            raise

        return record.original_url

    async def _find_live_record(self, identifier: str) -> UrlRecord:
        now = self.clock()

        if self.cache:
            record = await self.cache.get(identifier)
            if record is not None:
                if is_expired(record, now):
                    await self.cache.invalidate(identifier)
                    raise NotFound()
                return record

        record = get_live_record(self.store, identifier, now)

        if self.cache:
            await self.cache.put(identifier, record)

        return record
