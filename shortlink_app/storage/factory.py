"""
Factory for creating URL store instances.
"""

import logging
from enum import Enum
from typing import Optional

from sqlalchemy.orm import Session

from .strategies import UrlStore, SQLAlchemyUrlStore, InMemoryUrlStore

logger = logging.getLogger(__name__)


class UrlStoreBackend(Enum):
    """Available store backends"""
    SQLALCHEMY = "sqlalchemy"
    MEMORY = "memory"


class UrlStoreFactory:
    """
    Builds the store for a request.

    SQLAlchemy stores wrap the request's session, so a new one is created per
    call. The in-memory store is a process-wide singleton (it IS the data).
    """
    
    _memory_instance: InMemoryUrlStore = None
    
    @classmethod
    def create(cls, backend: UrlStoreBackend, db: Optional[Session] = None) -> UrlStore:
        """
        Args:
            backend: Type of store backend (from enum)
            db: Session for the SQLAlchemy backend
        """
        if backend == UrlStoreBackend.SQLALCHEMY:
            if db is None:
                raise ValueError("SQLAlchemy store requires a database session")
            return SQLAlchemyUrlStore(db)
        
        if backend == UrlStoreBackend.MEMORY:
            if cls._memory_instance is None:
                cls._memory_instance = InMemoryUrlStore()
                logger.info("In-memory URL store initialized")
            return cls._memory_instance
        
        raise ValueError(f"Unknown store backend: {backend}")
    
    @classmethod
    def clear_instance(cls):
        """Drop the in-memory store (for testing)"""
        cls._memory_instance = None
