"""
URL record storage.

Strategy Pattern over the persistence backend: services depend on the
UrlStore interface only.
"""

from .strategies import UrlStore, SQLAlchemyUrlStore, InMemoryUrlStore
from .factory import UrlStoreFactory, UrlStoreBackend

__all__ = [
    "UrlStore",
    "SQLAlchemyUrlStore",
    "InMemoryUrlStore",
    "UrlStoreFactory",
    "UrlStoreBackend",
]
