import uuid
from datetime import datetime
from typing import Callable, List, Optional

from shortlink_app.cache.strategies import RecordCache
from shortlink_app.config import ShortenerConfig
from shortlink_app.exceptions import CodeConflict, AliasTaken, NotFound
from shortlink_app.schemas.records import UrlRecord, is_expired, utc_now
from shortlink_app.schemas.url import URLResponse, to_url_response
from shortlink_app.services.short_code_strategies import (
    RandomShortCodeStrategy,
    ShortCodeStrategy,
    resolve_unique_code,
)
from shortlink_app.services.validators import (
    validate_alias,
    validate_expires_at,
    validate_original_url,
)
from shortlink_app.storage.strategies import UrlStore

# Retries of the insert after a concurrent create took our generated code
CODE_CONFLICT_RETRIES = 1


def get_live_record(store: UrlStore, identifier: str, now: datetime) -> UrlRecord:
    """
    Look up a record by short code or alias.

    Raises:
        NotFound: no such record, or it has expired (the two are not distinguished)
    """
    record = store.find_by_code_or_alias(identifier)
    if record is None or is_expired(record, now):
        raise NotFound()
    return record


class URLService:
    """
    URL Service: create, inspect, list and delete short URLs.

    Store, config and cache are injected by the wiring layer; nothing here
    reads global settings.
    """
    
    def __init__(
        self,
        store: UrlStore,
        config: ShortenerConfig,
        cache: Optional[RecordCache] = None,
        code_strategy: Optional[ShortCodeStrategy] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        """
        Args:
            store: URL record store
            config: code length, retry budget and base URL
            cache: redirect cache to invalidate on delete (optional)
            code_strategy: candidate code generator (random by default)
            clock: source of "now", injectable for tests
        """
        self.store = store
        self.config = config
        self.cache = cache
        self.code_strategy = code_strategy or RandomShortCodeStrategy(
            length=config.short_code_length
        )
        self.clock = clock

    async def create_short_url(
        self,
        original_url: str,
        alias: Optional[str] = None,
        expires_at: Optional[datetime] = None
    ) -> URLResponse:
        """Create a new short URL
        
        Process:
        1. Validate and normalize input
        2. Reject an alias that is already stored as an alias or a short code
        3. Resolve a short code that is neither a stored code nor an alias
        4. Insert; the store's unique constraints have the final word
        
        The same original URL may be shortened any number of times.
        
        Raises:
            ValidationError, AliasTaken, CodeGenerationExhausted, CodeConflict
        """
        now = self.clock()
        original_url = validate_original_url(original_url)
        alias = validate_alias(alias)
        expires_at = validate_expires_at(expires_at, now)

        if alias and self._identifier_taken(alias):
            raise AliasTaken(alias)

        for attempt in range(CODE_CONFLICT_RETRIES + 1):
            short_code = resolve_unique_code(
                self.config.max_generation_attempts,
                self.code_strategy.generate,
                self._identifier_taken,
            )
            record = UrlRecord(
                id=str(uuid.uuid4()),
                original_url=original_url,
                short_code=short_code,
                alias=alias,
                created_at=now,
                updated_at=now,
                expires_at=expires_at,
                click_count=0,
            )
            try:
                saved = self.store.create(record)
                break
            except CodeConflict:
                if attempt == CODE_CONFLICT_RETRIES:
                    raise

        return to_url_response(saved, self.config, self.clock())

    def _identifier_taken(self, identifier: str) -> bool:
        """Codes and aliases share one lookup namespace"""
        return self.store.exists_by_code(identifier) or self.store.exists_by_alias(identifier)

    async def get_url_info(self, identifier: str) -> URLResponse:
        """Get URL information without recording a click"""
        now = self.clock()
        record = get_live_record(self.store, identifier, now)
        return to_url_response(record, self.config, now)

    async def list_urls(self) -> List[URLResponse]:
        """All stored URLs, newest first (expired ones included and flagged)"""
        now = self.clock()
        return [to_url_response(r, self.config, now) for r in self.store.list_all()]

    async def delete_url(self, identifier: str) -> None:
        """
        Permanently delete a short URL and all of its click events.
        Also invalidates the redirect cache for its code and alias.
        """
        record = get_live_record(self.store, identifier, self.clock())
        self.store.delete(record.id)

        if self.cache:
            identifiers = [record.short_code]
            if record.alias:
                identifiers.append(record.alias)
            await self.cache.invalidate(*identifiers)
