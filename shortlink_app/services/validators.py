"""
Input validation for the create flow.

Each function returns the normalized value or raises ValidationError.
"""

import re
from datetime import datetime
from typing import Optional

from pydantic import HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from shortlink_app.exceptions import ValidationError
from shortlink_app.schemas.records import as_utc

ALIAS_MIN_LENGTH = 3
ALIAS_MAX_LENGTH = 20
ALIAS_PATTERN = re.compile(r"[a-zA-Z0-9_-]+")

_http_url = TypeAdapter(HttpUrl)


def validate_original_url(value: str) -> str:
    """Require an absolute http(s) URL; return it trimmed but otherwise as given"""
    url = (value or "").strip()
    if not url:
        raise ValidationError("Please provide a valid URL")
    try:
        _http_url.validate_python(url)
    except PydanticValidationError:
        raise ValidationError("Please provide a valid URL") from None
    return url


def validate_alias(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    alias = value.strip().lower()
    if len(alias) < ALIAS_MIN_LENGTH:
        raise ValidationError(f"Alias must be at least {ALIAS_MIN_LENGTH} characters long")
    if len(alias) > ALIAS_MAX_LENGTH:
        raise ValidationError(f"Alias cannot exceed {ALIAS_MAX_LENGTH} characters")
    if not ALIAS_PATTERN.fullmatch(alias):
        raise ValidationError(
            "Alias can only contain letters, numbers, underscores, and hyphens"
        )
    return alias


def validate_expires_at(value: Optional[datetime], now: datetime) -> Optional[datetime]:
    """Naive datetimes are read as UTC"""
    if value is None:
        return None
    expires_at = as_utc(value)
    if expires_at <= as_utc(now):
        raise ValidationError("Expiration date must be in the future")
    return expires_at
