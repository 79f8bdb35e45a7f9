"""
FastAPI dependencies for dependency injection.

This is the only place (besides main.py) that reads global settings: it turns
them into explicit objects (ShortenerConfig, cache, store) and hands those to
the services.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from shortlink_app.cache.factory import CacheFactory, CacheBackend
from shortlink_app.cache.strategies import RecordCache
from shortlink_app.config import settings, ShortenerConfig
from shortlink_app.database.connection import get_db
from shortlink_app.services.analytics_service import AnalyticsService
from shortlink_app.services.click_recorder import ClickRecorder
from shortlink_app.services.redirect_service import RedirectResolver
from shortlink_app.services.short_code_strategies import RandomShortCodeStrategy
from shortlink_app.services.url_service import URLService
from shortlink_app.storage.factory import UrlStoreFactory, UrlStoreBackend
from shortlink_app.storage.strategies import UrlStore


@lru_cache()
def get_shortener_config() -> ShortenerConfig:
    return ShortenerConfig.from_settings(settings)


@lru_cache()
def get_cache() -> RecordCache:
    """Process-wide redirect cache, chosen by settings.cache_backend"""
    backend = CacheBackend(settings.cache_backend)
    return CacheFactory.create(backend, ttl=settings.cache_ttl, redis_url=settings.redis_url)


def get_url_store(db: Session = Depends(get_db)) -> UrlStore:
    """Store for this request (wraps the request's DB session)"""
    backend = UrlStoreBackend(settings.store_backend)
    return UrlStoreFactory.create(backend, db)


def get_url_service(
    store: UrlStore = Depends(get_url_store),
    cache: RecordCache = Depends(get_cache),
    config: ShortenerConfig = Depends(get_shortener_config)
) -> URLService:
    """
    URLService with all dependencies injected.
    
    Reserved path keywords are handed to the code generator so a generated
    code can never shadow a route.
    """
    strategy = RandomShortCodeStrategy(
        length=config.short_code_length,
        reserved=settings.reserved_paths
    )
    return URLService(store=store, config=config, cache=cache, code_strategy=strategy)


def get_redirect_resolver(
    store: UrlStore = Depends(get_url_store),
    cache: RecordCache = Depends(get_cache)
) -> RedirectResolver:
    return RedirectResolver(
        store=store,
        recorder=ClickRecorder(store),
        cache=cache
    )


def get_analytics_service(store: UrlStore = Depends(get_url_store)) -> AnalyticsService:
    return AnalyticsService(store)
