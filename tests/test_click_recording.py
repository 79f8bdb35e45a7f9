"""
Tests for click recording and redirect resolution.
"""
import asyncio
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from shortlink_app.cache.strategies import InMemoryRecordCache
from shortlink_app.exceptions import NotFound, PersistenceError, ValidationError
from shortlink_app.services.click_recorder import ClickRecorder
from shortlink_app.services.redirect_service import RedirectResolver
from shortlink_app.storage.strategies import SQLAlchemyUrlStore


def make_resolver(store, cache=None, clock=None):
    if clock is None:
        return RedirectResolver(store, ClickRecorder(store), cache=cache)
    return RedirectResolver(store, ClickRecorder(store, clock=clock), cache=cache, clock=clock)


class FailingStore:
    """Wraps a store and fails every click write"""

    def __init__(self, store):
        self._store = store

    def __getattr__(self, name):
        return getattr(self._store, name)

    def record_click(self, click):
        raise PersistenceError("disk full")


class TestClickRecorder:

    def test_records_event_with_metadata(self, store, record_factory, clock):
        record = store.create(record_factory())
        recorder = ClickRecorder(store, clock=clock)

        recorder.record_click(record, "1.2.3.4", user_agent="Mozilla/5.0", referrer="https://t.co/x")

        clicks = store.list_clicks(record.id)
        assert len(clicks) == 1
        assert clicks[0].url_id == record.id
        assert clicks[0].user_agent == "Mozilla/5.0"
        assert clicks[0].referrer == "https://t.co/x"
        assert clicks[0].clicked_at == clock.now
        assert store.find_by_code_or_alias(record.short_code).click_count == 1

    def test_optional_metadata_may_be_missing(self, store, record_factory):
        record = store.create(record_factory())

        ClickRecorder(store).record_click(record, "1.2.3.4")

        click = store.list_clicks(record.id)[0]
        assert click.user_agent is None
        assert click.referrer is None
        assert click.country_code is None

    def test_ip_address_required(self, store, record_factory):
        record = store.create(record_factory())

        with pytest.raises(ValidationError):
            ClickRecorder(store).record_click(record, "")

        assert store.count_clicks() == 0

    def test_updates_updated_at(self, store, record_factory, clock):
        record = store.create(record_factory(created_at=clock.now))
        clock.advance(minutes=5)

        ClickRecorder(store, clock=clock).record_click(record, "1.2.3.4")

        assert store.find_by_code_or_alias(record.short_code).updated_at == clock.now


class TestRedirectResolver:

    def test_returns_original_url_and_counts(self, store, record_factory):
        """Scenario: record with 5 clicks, one more redirect makes 6"""
        store.create(record_factory(short_code="abc123", click_count=5))
        resolver = make_resolver(store)

        target = asyncio.run(resolver.resolve_and_record("abc123", "1.2.3.4"))

        assert target == "https://example.com/path"
        assert store.find_by_code_or_alias("abc123").click_count == 6

    def test_unknown_identifier(self, store):
        with pytest.raises(NotFound):
            asyncio.run(make_resolver(store).resolve_and_record("nope42", "1.2.3.4"))
        assert store.count_clicks() == 0

    def test_expired_record_not_found_and_not_counted(self, store, record_factory, clock):
        store.create(record_factory(expires_at=clock.now - timedelta(seconds=1)))
        resolver = make_resolver(store, clock=clock)

        with pytest.raises(NotFound):
            asyncio.run(resolver.resolve_and_record("abc123", "1.2.3.4"))

        assert store.count_clicks() == 0
        assert store.find_by_code_or_alias("abc123").click_count == 0

    def test_persistence_failure_propagates(self, memory_store, record_factory):
        memory_store.create(record_factory())
        resolver = make_resolver(FailingStore(memory_store))

        with pytest.raises(PersistenceError):
            asyncio.run(resolver.resolve_and_record("abc123", "1.2.3.4"))

        assert memory_store.find_by_code_or_alias("abc123").click_count == 0
        assert memory_store.count_clicks() == 0

    def test_cached_record_still_expires(self, memory_store, record_factory, clock):
        memory_store.create(record_factory(expires_at=clock.now + timedelta(minutes=10)))
        cache = InMemoryRecordCache()
        resolver = make_resolver(memory_store, cache=cache, clock=clock)

        asyncio.run(resolver.resolve_and_record("abc123", "1.2.3.4"))
        assert asyncio.run(cache.contains("abc123"))

        clock.advance(minutes=11)

        with pytest.raises(NotFound):
            asyncio.run(resolver.resolve_and_record("abc123", "1.2.3.4"))
        assert memory_store.count_clicks() == 1

    def test_stale_cache_entry_after_delete(self, memory_store, record_factory):
        """Another instance deleted the record; our cache still has it"""
        record = memory_store.create(record_factory())
        cache = InMemoryRecordCache()
        resolver = make_resolver(memory_store, cache=cache)
        asyncio.run(resolver.resolve_and_record("abc123", "1.2.3.4"))

        memory_store.delete(record.id)

        with pytest.raises(NotFound):
            asyncio.run(resolver.resolve_and_record("abc123", "1.2.3.4"))
        assert not asyncio.run(cache.contains("abc123"))

    def test_concurrent_redirects_are_all_counted(self, memory_store, record_factory):
        """k concurrent redirects: click_count == k and k events stored"""
        record = memory_store.create(record_factory())
        resolver = make_resolver(memory_store)
        visits = 200

        def visit(i):
            return asyncio.run(resolver.resolve_and_record("abc123", f"10.0.{i // 250}.{i % 250}"))

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(visit, range(visits)))

        assert results == ["https://example.com/path"] * visits
        assert memory_store.find_by_code_or_alias("abc123").click_count == visits
        assert memory_store.count_clicks(record.id) == visits

    def test_concurrent_redirects_on_database(self, sql_store, session_factory, record_factory):
        """Each visit on its own session: the counter UPDATE loses no increments"""
        record = sql_store.create(record_factory())
        visits = 100

        def visit(i):
            db = session_factory()
            try:
                store = SQLAlchemyUrlStore(db)
                return asyncio.run(make_resolver(store).resolve_and_record("abc123", f"10.1.0.{i}"))
            finally:
                db.close()

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(visit, range(visits)))

        assert results == ["https://example.com/path"] * visits
        db = session_factory()
        try:
            fresh = SQLAlchemyUrlStore(db)
            assert fresh.find_by_code_or_alias("abc123").click_count == visits
            assert fresh.count_clicks(record.id) == visits
            assert fresh.count_unique_visitors(record.id) == visits
        finally:
            db.close()

    def test_sequential_redirects_on_database(self, sql_store, record_factory):
        record = sql_store.create(record_factory(alias="my-link"))
        resolver = make_resolver(sql_store)

        for i in range(25):
            identifier = "my-link" if i % 2 else "abc123"
            asyncio.run(resolver.resolve_and_record(identifier, "1.2.3.4"))

        assert sql_store.find_by_code_or_alias("abc123").click_count == 25
        assert sql_store.count_clicks(record.id) == 25


class TestInMemoryRecordCache:

    def test_entry_expires_after_ttl(self, record_factory):
        now = [100.0]
        cache = InMemoryRecordCache(ttl=60, clock=lambda: now[0])
        record = record_factory()

        asyncio.run(cache.put("abc123", record))
        assert asyncio.run(cache.get("abc123")) == record

        now[0] += 60
        assert asyncio.run(cache.get("abc123")) is None
        assert not asyncio.run(cache.contains("abc123"))

    def test_invalidate_removes_every_identifier(self, record_factory):
        cache = InMemoryRecordCache()
        record = record_factory(alias="my-link")
        asyncio.run(cache.put("abc123", record))
        asyncio.run(cache.put("my-link", record))

        asyncio.run(cache.invalidate("abc123", "my-link", "never-cached"))

        assert not asyncio.run(cache.contains("abc123"))
        assert not asyncio.run(cache.contains("my-link"))
