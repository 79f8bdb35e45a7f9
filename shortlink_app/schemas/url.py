from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime
from shortlink_app.config import ShortenerConfig
from shortlink_app.schemas.records import UrlRecord, is_expired, short_identifier


class URLCreate(BaseModel):
    """Request body for creating a short URL.

    Fields are only typed here; the URL service validates and normalizes
    them so that every caller gets the same rules.
    """
    original_url: str = Field(..., description="The original URL to be shortened")
    alias: Optional[str] = Field(
        None,
        description="Custom alias (3-20 letters, digits, underscores or hyphens)"
    )
    expires_at: Optional[datetime] = Field(
        None,
        description="Expiration date (ISO 8601), must be in the future"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "original_url": "https://www.example.com/very/long/url",
                "alias": "my-link",
                "expires_at": "2030-12-31T23:59:59Z",
            }
        }
    )


class URLResponse(BaseModel):
    id: str
    original_url: str
    short_code: str
    alias: Optional[str] = None
    short_url: str
    created_at: datetime
    expires_at: Optional[datetime] = None
    click_count: int
    is_expired: bool


def to_url_response(record: UrlRecord, config: ShortenerConfig, now: datetime) -> URLResponse:
    """Map a stored record to the response shape (short_url, is_expired derived)"""
    return URLResponse(
        id=record.id,
        original_url=record.original_url,
        short_code=record.short_code,
        alias=record.alias,
        short_url=f"{config.base_url}/{short_identifier(record)}",
        created_at=record.created_at,
        expires_at=record.expires_at,
        click_count=record.click_count,
        is_expired=is_expired(record, now),
    )
