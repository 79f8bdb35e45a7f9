"""
Test configuration and fixtures for the shortlink service.
This centralizes all test setup, making individual tests clean.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from main import app
from shortlink_app.cache.strategies import InMemoryRecordCache
from shortlink_app.config import ShortenerConfig
from shortlink_app.database.connection import Base, enable_sqlite_foreign_keys, get_db
from shortlink_app.dependencies import get_cache
from shortlink_app.schemas.records import UrlRecord
from shortlink_app.storage.strategies import InMemoryUrlStore, SQLAlchemyUrlStore

# Test database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False, "timeout": 30})
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

BASE_URL = "http://sho.rt"


class FakeClock:
    """Callable clock that only moves when told to"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta):
        self.now = self.now + timedelta(**delta)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    This ensures tests are isolated and don't affect each other.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def sql_store(db_session):
    return SQLAlchemyUrlStore(db_session)


@pytest.fixture
def session_factory(db_session):
    """Opens extra sessions on the test database (one per worker thread)"""
    return TestingSessionLocal


@pytest.fixture
def memory_store():
    return InMemoryUrlStore()


@pytest.fixture(params=["sqlalchemy", "memory"])
def store(request, db_session):
    """Runs the test once against each store backend"""
    if request.param == "sqlalchemy":
        return SQLAlchemyUrlStore(db_session)
    return InMemoryUrlStore()


@pytest.fixture
def config():
    return ShortenerConfig(short_code_length=6, max_generation_attempts=10, base_url=BASE_URL)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def record_factory():
    """Build UrlRecords directly, bypassing the create flow"""
    def make(
        short_code="abc123",
        original_url="https://example.com/path",
        alias=None,
        expires_at=None,
        click_count=0,
        created_at=None
    ):
        created_at = created_at or datetime.now(timezone.utc)
        return UrlRecord(
            id=str(uuid.uuid4()),
            original_url=original_url,
            short_code=short_code,
            alias=alias,
            created_at=created_at,
            updated_at=created_at,
            expires_at=expires_at,
            click_count=click_count,
        )
    return make


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database and cache dependencies overridden.
    This is the main fixture that tests will use.
    """
    def override_get_db():
        yield db_session
    
    cache = InMemoryRecordCache()
    
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache
    
    with TestClient(app) as test_client:
        yield test_client
    
    app.dependency_overrides.clear()
