"""Tests for cache stores and the degrade-to-empty article cache."""

import asyncio
import json
import time
from datetime import datetime, timedelta, timezone

import pytest

from wind_feed.cache import (
    ArticleCache,
    CacheStore,
    FileStore,
    MemoryStore,
    build_store,
    decode_articles,
    is_fresh,
)
from wind_feed.config import CacheConfig
from wind_feed.core.types import AICategories, Article

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def _article(url: str) -> Article:
    return Article(
        title=f"Title {url}",
        description="Desc...",
        source="Test",
        date=NOW,
        url=url,
        image="https://cdn.example/p.jpg",
        tags=["offshore", "planning"],
        category="offshore",
        province="Munster",
        ai_categories=AICategories(project_stage="planning", key_topics=["grid", "grid"]),
    )


class FailingStore(CacheStore):
    async def get(self, key):
        raise ConnectionError("store unreachable")

    async def set(self, key, value, ttl_seconds=None):
        raise ConnectionError("store unreachable")

    async def clear(self, key):
        raise ConnectionError("store unreachable")


class SlowStore(MemoryStore):
    async def get(self, key):
        await asyncio.sleep(1)
        return await super().get(key)


def test_save_and_load_memory():
    cache = ArticleCache(MemoryStore())

    async def _run():
        ok = await cache.save([_article("https://x/1"), _article("https://x/2")], now=NOW)
        return ok, await cache.load()

    ok, loaded = asyncio.run(_run())

    assert ok
    assert [a.url for a in loaded.articles] == ["https://x/1", "https://x/2"]
    assert loaded.written_at == NOW
    assert loaded.articles[0].ai_categories.key_topics == ["grid"]
    assert loaded.articles[0].date == NOW


def test_file_store_roundtrip_and_clear(tmp_path):
    store = FileStore(tmp_path / "cache")
    cache = ArticleCache(store, key="articles-cache")

    async def _run():
        await cache.save([_article("https://x/1")], now=NOW)
        first = await cache.load()
        cleared = await cache.clear()
        second = await cache.load()
        return first, cleared, second

    first, cleared, second = asyncio.run(_run())

    assert len(first.articles) == 1
    assert cleared
    assert second.articles == []
    assert second.written_at is None


def test_file_store_expiry(tmp_path, monkeypatch):
    store = FileStore(tmp_path)
    asyncio.run(store.set("k", "v", ttl_seconds=60))
    assert asyncio.run(store.get("k")) == "v"

    real_time = time.time
    monkeypatch.setattr("wind_feed.cache.time.time", lambda: real_time() + 120)
    assert asyncio.run(store.get("k")) is None
    assert not store.path_for("k").exists()


def test_corrupt_payload_loads_empty():
    store = MemoryStore()
    asyncio.run(store.set("articles-cache", "{not json"))
    loaded = asyncio.run(ArticleCache(store).load())
    assert loaded.articles == []


def test_bad_records_are_skipped():
    good = _article("https://x/1").to_dict()
    data = {"timestamp": NOW.isoformat(), "articles": [good, {"title": "no url"}, "junk", {**good, "date": "bad"}]}

    loaded = decode_articles(data)

    assert [a.url for a in loaded.articles] == ["https://x/1"]


def test_bare_list_payload_is_accepted():
    loaded = decode_articles([_article("https://x/1").to_dict()])
    assert len(loaded.articles) == 1
    assert loaded.written_at is None
    assert decode_articles("nonsense").articles == []


def test_failing_store_degrades():
    cache = ArticleCache(FailingStore())
    assert asyncio.run(cache.load()).articles == []
    assert asyncio.run(cache.save([_article("https://x/1")])) is False
    assert asyncio.run(cache.clear()) is False


def test_slow_store_times_out():
    store = SlowStore()
    asyncio.run(store.set("articles-cache", json.dumps({"articles": []})))
    cache = ArticleCache(store, op_timeout=0.05)
    assert asyncio.run(cache.load()).articles == []


def test_build_store_backends(tmp_path):
    assert isinstance(build_store(CacheConfig(backend="memory")), MemoryStore)
    assert isinstance(build_store(CacheConfig(backend="file", directory=str(tmp_path))), FileStore)
    with pytest.raises(ValueError):
        build_store(CacheConfig(backend="redis"))


def test_is_fresh():
    assert is_fresh(NOW - timedelta(minutes=5), 10, now=NOW)
    assert not is_fresh(NOW - timedelta(minutes=10), 10, now=NOW)
    assert not is_fresh(None, 10, now=NOW)


def test_non_list_tags_fall_back_to_category():
    record = {**_article("https://x/1").to_dict(), "tags": "offshore"}
    loaded = decode_articles({"timestamp": NOW.isoformat(), "articles": [record]})
    assert loaded.articles[0].tags == ["offshore"]

    record = {**_article("https://x/2").to_dict(), "tags": None, "category": "onshore"}
    assert decode_articles([record]).articles[0].tags == ["onshore"]
