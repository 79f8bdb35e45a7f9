from typing import List

from fastapi import APIRouter, Depends, status
from shortlink_app.config import settings
from shortlink_app.exceptions import ValidationError
from shortlink_app.schemas.url import URLCreate, URLResponse
from shortlink_app.services.url_service import URLService
from shortlink_app.dependencies import get_url_service

router = APIRouter(prefix="/urls", tags=["urls"])


@router.post("/", response_model=URLResponse, status_code=status.HTTP_201_CREATED)
async def create_short_url(
    url_data: URLCreate,
    url_service: URLService = Depends(get_url_service)
):
    """Create a short URL with optional alias and expiration date"""
    if url_data.alias and url_data.alias.strip().lower() in settings.reserved_paths:
        raise ValidationError(f'Alias "{url_data.alias.strip()}" is reserved')

    return await url_service.create_short_url(
        url_data.original_url,
        alias=url_data.alias,
        expires_at=url_data.expires_at
    )


@router.get("/", response_model=List[URLResponse])
async def list_urls(url_service: URLService = Depends(get_url_service)):
    """List all short URLs, newest first"""
    return await url_service.list_urls()


@router.get("/{identifier}", response_model=URLResponse)
async def get_url_info(
    identifier: str,
    url_service: URLService = Depends(get_url_service)
):
    """Get information about a short URL without redirecting"""
    return await url_service.get_url_info(identifier)


@router.delete("/{identifier}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_url(
    identifier: str,
    url_service: URLService = Depends(get_url_service)
):
    """Permanently delete a short URL and its analytics"""
    await url_service.delete_url(identifier)
