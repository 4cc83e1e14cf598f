"""
Unit tests for docsession/sessions/store.py - Document Stores.

Uses fakeredis for RedisDocumentStore (no real Redis needed).
"""

import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from docsession.core.exceptions import SessionStoreError
from docsession.sessions.store import (
    DocumentStore,
    InMemoryDocumentStore,
    RedisDocumentStore,
)


class TestDocumentStoreProtocol:
    """Both implementations satisfy the DocumentStore protocol."""

    def test_memory_store_is_document_store(self, memory_store):
        assert isinstance(memory_store, DocumentStore)

    def test_redis_store_is_document_store(self, redis_store):
        assert isinstance(redis_store, DocumentStore)


class TestStoreBehavior:
    """Behavior shared by every store."""

    @pytest.mark.asyncio
    async def test_find_one_missing(self, any_store):
        assert await any_store.find_one("nope") is None

    @pytest.mark.asyncio
    async def test_upsert_creates_document(self, any_store):
        await any_store.update("abc", {"$set": {"name": "koa"}})

        assert await any_store.find_one("abc") == {"_id": "abc", "name": "koa"}

    @pytest.mark.asyncio
    async def test_update_applies_to_existing(self, any_store):
        await any_store.update("abc", {"$inc": {"views": 1}})
        await any_store.update("abc", {"$inc": {"views": 1}, "$push": {"log": {"$each": ["x"]}}})

        assert await any_store.find_one("abc") == {"_id": "abc", "views": 2, "log": ["x"]}

    @pytest.mark.asyncio
    async def test_no_upsert_skips_missing(self, any_store):
        await any_store.update("abc", {"$set": {"name": "koa"}}, upsert=False)

        assert await any_store.find_one("abc") is None

    @pytest.mark.asyncio
    async def test_failed_update_is_all_or_nothing(self, any_store):
        await any_store.update("abc", {"$set": {"name": "koa", "views": "many"}})

        with pytest.raises(SessionStoreError):
            await any_store.update("abc", {"$set": {"name": "other"}, "$inc": {"views": 1}})

        assert await any_store.find_one("abc") == {"_id": "abc", "name": "koa", "views": "many"}

    @pytest.mark.asyncio
    async def test_remove(self, any_store):
        await any_store.update("abc", {"$set": {"name": "koa"}})

        await any_store.remove("abc")

        assert await any_store.find_one("abc") is None
        assert not await any_store.exists("abc")

    @pytest.mark.asyncio
    async def test_remove_missing_is_noop(self, any_store):
        await any_store.remove("nope")

    @pytest.mark.asyncio
    async def test_found_document_is_a_copy(self, any_store):
        await any_store.update("abc", {"$set": {"array": [1]}})

        found = await any_store.find_one("abc")
        found["array"].append(2)

        assert (await any_store.find_one("abc"))["array"] == [1]


class TestRedisDocumentStore:
    """Redis specifics: key layout, JSON values, TTL and error wrapping."""

    @pytest.mark.asyncio
    async def test_key_prefix_and_json(self, redis_store, fake_redis):
        await redis_store.update("abc", {"$set": {"name": "koa"}})

        raw = await fake_redis.get("test-session:abc")

        assert json.loads(raw) == {"_id": "abc", "name": "koa"}

    @pytest.mark.asyncio
    async def test_ttl_is_set(self, redis_store, fake_redis):
        await redis_store.update("abc", {"$set": {"name": "koa"}})

        ttl = await fake_redis.ttl("test-session:abc")

        assert 0 < ttl <= 3600

    @pytest.mark.asyncio
    async def test_defaults_from_settings(self, fake_redis):
        store = RedisDocumentStore(redis_client=fake_redis)

        await store.update("abc", {"$set": {"name": "koa"}})

        assert await fake_redis.exists("session:abc")

    @pytest.mark.asyncio
    async def test_invalid_json_raises_store_error(self, redis_store, fake_redis):
        await fake_redis.set("test-session:abc", "not json")

        with pytest.raises(SessionStoreError):
            await redis_store.find_one("abc")

    @pytest.mark.asyncio
    async def test_connection_error_is_wrapped(self, redis_store, fake_redis, monkeypatch):
        async def broken_get(*args, **kwargs):
            raise RedisConnectionError("connection refused")

        monkeypatch.setattr(fake_redis, "get", broken_get)

        with pytest.raises(SessionStoreError) as exc_info:
            await redis_store.find_one("abc")

        assert exc_info.value.session_id == "abc"


class TestInMemoryDocumentStore:
    """In-memory specifics."""

    @pytest.mark.asyncio
    async def test_len_and_contains(self):
        store = InMemoryDocumentStore()

        await store.update("abc", {"$set": {"a": 1}})

        assert len(store) == 1
        assert "abc" in store
        assert "nope" not in store
