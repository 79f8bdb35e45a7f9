"""
URL record store strategies using Strategy Pattern.

Allows switching between storage backends:
- SQLAlchemy: any relational database (SQLite for development, PostgreSQL in production)
- In-memory: single-process development and tests

The store is the only shared mutable resource of the service. Every write that
must be atomic (insert with unique constraints, counter increment, click
recording) is atomic inside the store, never in the callers.
"""

import threading
from abc import ABC, abstractmethod
from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from shortlink_app.exceptions import AliasTaken, CodeConflict, NotFound, PersistenceError
from shortlink_app.models.click import ClickEvent
from shortlink_app.models.url import URL
from shortlink_app.schemas.records import (
    ClickEventRecord,
    UrlRecord,
    as_utc,
    is_expired,
)


class UrlStore(ABC):
    """
    Abstract base class for URL record stores.

    Operations are synchronous: they are blocking I/O for database backends,
    and callers must not hold any lock across them.
    """

    # URL records

    @abstractmethod
    def find_by_code_or_alias(self, identifier: str) -> Optional[UrlRecord]:
        """Find a record whose short code or alias equals `identifier`"""
        pass

    @abstractmethod
    def exists_by_code(self, short_code: str) -> bool:
        pass

    @abstractmethod
    def exists_by_alias(self, alias: str) -> bool:
        pass

    @abstractmethod
    def create(self, record: UrlRecord) -> UrlRecord:
        """
        Persist a new record.

        Raises:
            AliasTaken: alias already stored
            CodeConflict: short code already stored
            PersistenceError: write failed
        """
        pass

    @abstractmethod
    def increment_click_count(self, url_id: str, now: datetime) -> None:
        """Atomically add one to click_count and touch updated_at"""
        pass

    @abstractmethod
    def record_click(self, click: ClickEventRecord) -> None:
        """
        Insert a click event and increment its record's click_count
        as one unit of work (both writes or neither).

        Raises:
            NotFound: the record no longer exists
            PersistenceError: write failed
        """
        pass

    @abstractmethod
    def delete(self, url_id: str) -> None:
        """Delete a record together with all of its click events"""
        pass

    @abstractmethod
    def list_all(self) -> List[UrlRecord]:
        """All records, newest created first"""
        pass

    @abstractmethod
    def count_urls(self) -> int:
        pass

    @abstractmethod
    def top_urls(self, limit: int, now: datetime) -> List[UrlRecord]:
        """Live records ordered by click_count, highest first"""
        pass

    # Click events

    @abstractmethod
    def list_clicks(
        self,
        url_id: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[ClickEventRecord]:
        """Click events (for one record or all), newest first"""
        pass

    @abstractmethod
    def count_clicks(self, url_id: Optional[str] = None) -> int:
        pass

    @abstractmethod
    def count_unique_visitors(self, url_id: Optional[str] = None) -> int:
        """Number of distinct IP addresses"""
        pass

    @abstractmethod
    def daily_click_counts(self, url_id: str, since: datetime) -> Dict[str, int]:
        """Clicks since `since`, grouped by ISO date (YYYY-MM-DD)"""
        pass

    @abstractmethod
    def referrer_counts(self, url_id: str) -> Dict[str, int]:
        """Clicks grouped by raw referrer; clicks without a referrer are skipped"""
        pass


def _to_url_record(url: URL) -> UrlRecord:
    return UrlRecord(
        id=url.id,
        original_url=url.original_url,
        short_code=url.short_code,
        alias=url.alias,
        created_at=as_utc(url.created_at),
        updated_at=as_utc(url.updated_at),
        expires_at=as_utc(url.expires_at),
        click_count=url.click_count or 0,
    )


def _to_click_record(click: ClickEvent) -> ClickEventRecord:
    return ClickEventRecord(
        id=click.id,
        url_id=click.url_id,
        ip_address=click.ip_address,
        user_agent=click.user_agent,
        referrer=click.referrer,
        country_code=click.country_code,
        clicked_at=as_utc(click.clicked_at),
    )


class SQLAlchemyUrlStore(UrlStore):
    """
    Relational implementation backed by a SQLAlchemy session.

    - Unique constraints on short_code / custom_alias arbitrate concurrent creates
    - Counter increments are a single UPDATE (no read-modify-write)
    - record_click commits the UPDATE and the INSERT together or rolls both back

    One instance per session (i.e. per request).
    """

    def __init__(self, db: Session):
        self.db = db

    def find_by_code_or_alias(self, identifier: str) -> Optional[UrlRecord]:
        url = self._run(lambda: self.db.execute(
            select(URL).where(or_(URL.short_code == identifier, URL.alias == identifier))
        ).scalars().first())
        return _to_url_record(url) if url else None

    def exists_by_code(self, short_code: str) -> bool:
        return self._exists(URL.short_code == short_code)

    def exists_by_alias(self, alias: str) -> bool:
        return self._exists(URL.alias == alias)

    def create(self, record: UrlRecord) -> UrlRecord:
        url = URL(
            id=record.id,
            original_url=record.original_url,
            short_code=record.short_code,
            alias=record.alias,
            click_count=record.click_count,
            created_at=record.created_at,
            updated_at=record.updated_at,
            expires_at=record.expires_at,
        )
        try:
            self.db.add(url)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            # The unique constraints decided; find out which one fired
            if record.alias and self.exists_by_alias(record.alias):
                raise AliasTaken(record.alias) from e
            if self.exists_by_code(record.short_code):
                raise CodeConflict(record.short_code) from e
            raise PersistenceError(f"Could not store short URL: {e.orig}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not store short URL: {e}") from e

        self.db.refresh(url)
        return _to_url_record(url)

    def increment_click_count(self, url_id: str, now: datetime) -> None:
        try:
            self._increment(url_id, now)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not update click count: {e}") from e

    def record_click(self, click: ClickEventRecord) -> None:
        try:
            if self._increment(click.url_id, click.clicked_at) == 0:
                self.db.rollback()
                raise NotFound()
            self.db.add(ClickEvent(
                id=click.id,
                url_id=click.url_id,
                ip_address=click.ip_address,
                user_agent=click.user_agent,
                referrer=click.referrer,
                country_code=click.country_code,
                clicked_at=click.clicked_at,
            ))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not record click: {e}") from e

    def delete(self, url_id: str) -> None:
        try:
            # Explicit child delete keeps the cascade independent of FK enforcement
            self.db.execute(delete(ClickEvent).where(ClickEvent.url_id == url_id))
            self.db.execute(delete(URL).where(URL.id == url_id))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not delete short URL: {e}") from e

    def list_all(self) -> List[UrlRecord]:
        urls = self._run(lambda: self.db.execute(
            select(URL).order_by(URL.created_at.desc())
        ).scalars().all())
        return [_to_url_record(url) for url in urls]

    def count_urls(self) -> int:
        return self._run(lambda: self.db.execute(
            select(func.count()).select_from(URL)
        ).scalar_one())

    def top_urls(self, limit: int, now: datetime) -> List[UrlRecord]:
        urls = self._run(lambda: self.db.execute(
            select(URL)
            .where(or_(URL.expires_at.is_(None), URL.expires_at > now))
            .order_by(URL.click_count.desc(), URL.created_at.desc())
            .limit(limit)
        ).scalars().all())
        return [_to_url_record(url) for url in urls]

    def list_clicks(
        self,
        url_id: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[ClickEventRecord]:
        query = select(ClickEvent).order_by(ClickEvent.clicked_at.desc())
        if url_id is not None:
            query = query.where(ClickEvent.url_id == url_id)
        if limit is not None:
            query = query.limit(limit)
        clicks = self._run(lambda: self.db.execute(query).scalars().all())
        return [_to_click_record(click) for click in clicks]

    def count_clicks(self, url_id: Optional[str] = None) -> int:
        query = select(func.count()).select_from(ClickEvent)
        if url_id is not None:
            query = query.where(ClickEvent.url_id == url_id)
        return self._run(lambda: self.db.execute(query).scalar_one())

    def count_unique_visitors(self, url_id: Optional[str] = None) -> int:
        query = select(func.count(func.distinct(ClickEvent.ip_address)))
        if url_id is not None:
            query = query.where(ClickEvent.url_id == url_id)
        return self._run(lambda: self.db.execute(query).scalar_one())

    def daily_click_counts(self, url_id: str, since: datetime) -> Dict[str, int]:
        day = func.date(ClickEvent.clicked_at)
        rows = self._run(lambda: self.db.execute(
            select(day, func.count())
            .where(ClickEvent.url_id == url_id, ClickEvent.clicked_at >= since)
            .group_by(day)
        ).all())
        # SQLite returns 'YYYY-MM-DD' strings, PostgreSQL returns dates
        return {str(row[0])[:10]: row[1] for row in rows}

    def referrer_counts(self, url_id: str) -> Dict[str, int]:
        rows = self._run(lambda: self.db.execute(
            select(ClickEvent.referrer, func.count())
            .where(ClickEvent.url_id == url_id, ClickEvent.referrer.is_not(None))
            .group_by(ClickEvent.referrer)
        ).all())
        return {row[0]: row[1] for row in rows}

    def _increment(self, url_id: str, now: datetime) -> int:
        result = self.db.execute(
            update(URL)
            .where(URL.id == url_id)
            .values(click_count=URL.click_count + 1, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def _exists(self, condition) -> bool:
        return self._run(lambda: self.db.execute(
            select(URL.id).where(condition).limit(1)
        ).first() is not None)

    def _run(self, query):
        try:
            return query()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Storage read failed: {e}") from e


class InMemoryUrlStore(UrlStore):
    """
    In-memory store using Python dicts guarded by one lock.

    Pros:
    - No database needed
    - Every operation is one critical section, so record_click is atomic

    Cons:
    - Not shared between processes
    - Lost on restart

    Used in development/testing environments.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._records: Dict[str, UrlRecord] = {}
        self._by_code: Dict[str, str] = {}
        self._by_alias: Dict[str, str] = {}
        self._clicks: List[ClickEventRecord] = []
        self._sequence: Dict[str, int] = {}  # insertion order, breaks created_at ties

    def find_by_code_or_alias(self, identifier: str) -> Optional[UrlRecord]:
        with self._lock:
            url_id = self._by_code.get(identifier) or self._by_alias.get(identifier)
            return self._records.get(url_id) if url_id else None

    def exists_by_code(self, short_code: str) -> bool:
        with self._lock:
            return short_code in self._by_code

    def exists_by_alias(self, alias: str) -> bool:
        with self._lock:
            return alias in self._by_alias

    def create(self, record: UrlRecord) -> UrlRecord:
        with self._lock:
            if record.alias and record.alias in self._by_alias:
                raise AliasTaken(record.alias)
            if record.short_code in self._by_code:
                raise CodeConflict(record.short_code)
            self._records[record.id] = record
            self._by_code[record.short_code] = record.id
            if record.alias:
                self._by_alias[record.alias] = record.id
            self._sequence[record.id] = len(self._sequence)
            return record

    def increment_click_count(self, url_id: str, now: datetime) -> None:
        with self._lock:
            self._increment(url_id, now)

    def record_click(self, click: ClickEventRecord) -> None:
        with self._lock:
            if not self._increment(click.url_id, click.clicked_at):
                raise NotFound()
            self._clicks.append(click)

    def delete(self, url_id: str) -> None:
        with self._lock:
            record = self._records.pop(url_id, None)
            if record is None:
                return
            self._by_code.pop(record.short_code, None)
            if record.alias:
                self._by_alias.pop(record.alias, None)
            self._sequence.pop(url_id, None)
            self._clicks = [c for c in self._clicks if c.url_id != url_id]

    def list_all(self) -> List[UrlRecord]:
        with self._lock:
            return sorted(
                self._records.values(),
                key=lambda r: (r.created_at, self._sequence[r.id]),
                reverse=True,
            )

    def count_urls(self) -> int:
        with self._lock:
            return len(self._records)

    def top_urls(self, limit: int, now: datetime) -> List[UrlRecord]:
        with self._lock:
            live = [r for r in self._records.values() if not is_expired(r, now)]
        live.sort(key=lambda r: (r.click_count, r.created_at), reverse=True)
        return live[:limit]

    def list_clicks(
        self,
        url_id: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[ClickEventRecord]:
        clicks = self._clicks_for(url_id)
        # Appended in time order; reverse for newest first
        clicks.reverse()
        return clicks if limit is None else clicks[:limit]

    def count_clicks(self, url_id: Optional[str] = None) -> int:
        return len(self._clicks_for(url_id))

    def count_unique_visitors(self, url_id: Optional[str] = None) -> int:
        return len({c.ip_address for c in self._clicks_for(url_id)})

    def daily_click_counts(self, url_id: str, since: datetime) -> Dict[str, int]:
        since = as_utc(since)
        return dict(Counter(
            c.clicked_at.date().isoformat()
            for c in self._clicks_for(url_id)
            if c.clicked_at >= since
        ))

    def referrer_counts(self, url_id: str) -> Dict[str, int]:
        return dict(Counter(
            c.referrer for c in self._clicks_for(url_id) if c.referrer is not None
        ))

    def _increment(self, url_id: str, now: datetime) -> bool:
        record = self._records.get(url_id)
        if record is None:
            return False
        self._records[url_id] = record.model_copy(
            update={"click_count": record.click_count + 1, "updated_at": now}
        )
        return True

    def _clicks_for(self, url_id: Optional[str]) -> List[ClickEventRecord]:
        with self._lock:
            if url_id is None:
                return list(self._clicks)
            return [c for c in self._clicks if c.url_id == url_id]
