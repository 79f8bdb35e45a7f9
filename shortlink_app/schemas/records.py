"""
Plain immutable records passed between the store and the services.

ORM rows never leave the storage layer; stores convert them into these
frozen models, and derived values (expiry, display identifier) are plain
functions over them.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops the offset)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UrlRecord(BaseModel):
    id: str
    original_url: str
    short_code: str
    alias: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    expires_at: Optional[datetime] = None
    click_count: int = 0

    model_config = ConfigDict(frozen=True, from_attributes=True)


class ClickEventRecord(BaseModel):
    id: str
    url_id: str
    ip_address: str
    user_agent: Optional[str] = None
    referrer: Optional[str] = None
    country_code: Optional[str] = None
    clicked_at: datetime

    model_config = ConfigDict(frozen=True, from_attributes=True)


def is_expired(record: UrlRecord, now: datetime) -> bool:
    """A record is logically expired once `now` has passed its expiry"""
    if record.expires_at is None:
        return False
    return as_utc(now) > as_utc(record.expires_at)


def short_identifier(record: UrlRecord) -> str:
    return record.alias or record.short_code
