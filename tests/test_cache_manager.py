"""
Tests for the translation cache.

Run with: pytest tests/test_cache_manager.py -v
"""

import pytest

from code_preserve_translator.cache_manager import CacheManager
from code_preserve_translator.fingerprint import cache_key
from code_preserve_translator.storage import MemoryStore

MINUTE = 60
DAY = 24 * 60 * MINUTE


def old_entry(created_at):
    return {"fingerprint": "old", "source_text": "old", "translated_text": "alt",
            "created_at": created_at}


class TestGetPut:

    @pytest.mark.asyncio
    async def test_fresh_entry_is_returned(self, cache_manager, clock):
        await cache_manager.put("Hello", "こんにちは")
        clock.advance(5 * MINUTE)

        entry = await cache_manager.get("Hello")

        assert entry is not None
        assert entry.translated_text == "こんにちは"
        assert entry.source_text == "Hello"
        assert entry.created_at == clock.now - 5 * MINUTE

    @pytest.mark.asyncio
    async def test_expired_entry_is_not_returned(self, cache_manager, clock):
        await cache_manager.put("Hello", "こんにちは")
        clock.advance(5 * MINUTE + 1)

        assert await cache_manager.get("Hello") is None

    @pytest.mark.asyncio
    async def test_missing_entry(self, cache_manager):
        assert await cache_manager.get("Never stored") is None

    @pytest.mark.asyncio
    async def test_put_overwrites(self, cache_manager):
        await cache_manager.put("Hello", "first")
        await cache_manager.put("Hello", "second")

        assert (await cache_manager.get("Hello")).translated_text == "second"

    @pytest.mark.asyncio
    async def test_empty_text_is_never_cached(self, cache_manager, store):
        assert await cache_manager.put("", "anything") is None
        assert await cache_manager.get("") is None
        assert await store.get_all() == {}

    @pytest.mark.asyncio
    async def test_malformed_entry_is_ignored(self, cache_manager, store):
        await store.set(cache_key("Hello"), {"bogus": True})

        assert await cache_manager.get("Hello") is None

    @pytest.mark.asyncio
    async def test_stored_under_fingerprint_key(self, cache_manager, store):
        entry = await cache_manager.put("a", "b")

        assert entry.fingerprint == "2p"
        assert "cache_2p" in await store.get_all()


class TestEviction:

    @pytest.mark.asyncio
    async def test_evict_removes_only_entries_past_retention(self, cache_manager, store, clock):
        await cache_manager.put("old text", "alt")
        clock.advance(6 * DAY)
        await cache_manager.put("new text", "neu")
        await store.set("page_doc", {"url": "doc"})
        clock.advance(1 * DAY + 1)

        removed = await cache_manager.evict()

        assert removed == 1
        keys = set((await store.get_all()).keys())
        assert keys == {cache_key("new text"), "page_doc"}

    @pytest.mark.asyncio
    async def test_evict_keeps_short_expired_entries(self, cache_manager, store, clock):
        await cache_manager.put("text", "translation")
        clock.advance(2 * DAY)

        assert await cache_manager.evict() == 0
        assert await cache_manager.get("text") is None
        assert cache_key("text") in await store.get_all()

    @pytest.mark.asyncio
    async def test_first_put_sweeps(self, clock):
        store = MemoryStore({"cache_old": old_entry(clock.now - 8 * DAY)})
        manager = CacheManager(store, clock=clock)

        await manager.put("Hello", "hi")

        assert "cache_old" not in await store.get_all()

    @pytest.mark.asyncio
    async def test_sweep_runs_at_most_once_per_interval(self, cache_manager, store, clock):
        await cache_manager.put("first", "1")
        await store.set("cache_old", old_entry(clock.now - 8 * DAY))

        await cache_manager.put("second", "2")
        assert "cache_old" in await store.get_all()

        clock.advance(61 * MINUTE)
        await cache_manager.put("third", "3")
        assert "cache_old" not in await store.get_all()

    @pytest.mark.asyncio
    async def test_malformed_cache_entries_are_swept(self, cache_manager, store):
        await store.set("cache_broken", {"created_at": "yesterday"})

        assert await cache_manager.evict() == 1
