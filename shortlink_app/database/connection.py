"""
Database engine, session factory and FastAPI session dependency.
"""

from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from shortlink_app.config import settings


def _connect_args(database_url: str) -> dict:
    # SQLite connections are shared across FastAPI's threadpool
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


def enable_sqlite_foreign_keys(engine_):
    """Turn on FK enforcement so ON DELETE CASCADE holds on SQLite."""
    if engine_.dialect.name != "sqlite":
        return

    @event.listens_for(engine_, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_engine(
    settings.database_url,
    connect_args=_connect_args(settings.database_url),
)
enable_sqlite_foreign_keys(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Yield a session per request and always close it"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
