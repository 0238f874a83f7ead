"""
Key-value cache for the merged article list.

This module provides an injectable async store interface with two backends
(process memory and JSON files on disk) and ArticleCache, which serializes
the article list and degrades to "empty" on any store failure, timeout or
corrupt payload.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import hashlib
import json
import logging
import os
from pathlib import Path
import tempfile
import time
from typing import Any

from .config import CacheConfig
from .core.types import Article
from .logging_utils import log_event

logger = logging.getLogger(__name__)


class CacheStore(ABC):
    """Async key-value store with per-key time-to-live."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value, or None when missing or expired."""
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        """Store a value, replacing any previous one."""
        raise NotImplementedError

    @abstractmethod
    async def clear(self, key: str) -> None:
        """Delete a key; missing keys are ignored."""
        raise NotImplementedError


class MemoryStore(CacheStore):
    """Process-local store; values vanish when the process exits."""

    def __init__(self) -> None:
        self._data: dict[str, tuple[str, float | None]] = {}

    async def get(self, key: str) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and time.time() >= expires_at:
            del self._data[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        expires_at = time.time() + ttl_seconds if ttl_seconds else None
        self._data[key] = (value, expires_at)

    async def clear(self, key: str) -> None:
        self._data.pop(key, None)


class FileStore(CacheStore):
    """Store keeping one JSON envelope per key in a directory.

    Each file holds {"expires_at": <epoch seconds or null>, "value": <str>}
    and is replaced atomically on write.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]
        return self.directory / f"{digest}.json"

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        await asyncio.to_thread(self._write, key, value, ttl_seconds)

    async def clear(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)

    def _read(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        envelope = json.loads(path.read_text(encoding="utf-8"))
        expires_at = envelope.get("expires_at")
        if expires_at is not None and time.time() >= float(expires_at):
            path.unlink(missing_ok=True)
            return None
        return envelope.get("value")

    def _write(self, key: str, value: str, ttl_seconds: int | None) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        envelope = {
            "key": key,
            "expires_at": time.time() + ttl_seconds if ttl_seconds else None,
            "value": value,
        }
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(envelope, handle, ensure_ascii=True)
            os.replace(tmp_name, self.path_for(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)


def build_store(cfg: CacheConfig) -> CacheStore:
    """Create the configured store backend.

    Raises:
        ValueError: If the backend name is not supported
    """
    backend = (cfg.backend or "file").lower().strip()
    if backend == "memory":
        return MemoryStore()
    if backend == "file":
        return FileStore(Path(cfg.directory))
    raise ValueError(f"Unsupported cache backend: {cfg.backend}. Supported: file, memory")


@dataclass
class CachedArticles:
    """Articles read back from the cache and the time they were written."""

    articles: list[Article] = field(default_factory=list)
    written_at: datetime | None = None


class ArticleCache:
    """Serializes the article list into a CacheStore.

    Every store operation is bounded by op_timeout. Reads that fail in any
    way return an empty CachedArticles; writes that fail return False.
    """

    def __init__(
        self,
        store: CacheStore,
        key: str = "articles-cache",
        ttl_days: int = 7,
        op_timeout: float = 2.0,
    ):
        self.store = store
        self.key = key
        self.ttl_days = ttl_days
        self.op_timeout = op_timeout

    @classmethod
    def from_config(cls, cfg: CacheConfig, store: CacheStore | None = None) -> ArticleCache:
        return cls(
            store if store is not None else build_store(cfg),
            key=cfg.key,
            ttl_days=cfg.ttl_days,
            op_timeout=cfg.op_timeout_seconds,
        )

    async def load(self) -> CachedArticles:
        try:
            raw = await asyncio.wait_for(self.store.get(self.key), timeout=self.op_timeout)
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                "Cache load failed",
                level=logging.WARNING,
                event="cache_load_failed",
                error=f"{type(exc).__name__}: {exc}",
            )
            return CachedArticles()
        if not raw:
            return CachedArticles()
        return self._decode(raw)

    async def save(self, articles: list[Article], now: datetime | None = None) -> bool:
        payload = encode_articles(articles, now or datetime.now(timezone.utc))
        ttl_seconds = int(timedelta(days=self.ttl_days).total_seconds())
        try:
            await asyncio.wait_for(
                self.store.set(self.key, payload, ttl_seconds), timeout=self.op_timeout
            )
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                "Cache save failed",
                level=logging.WARNING,
                event="cache_save_failed",
                error=f"{type(exc).__name__}: {exc}",
            )
            return False
        return True

    async def clear(self) -> bool:
        try:
            await asyncio.wait_for(self.store.clear(self.key), timeout=self.op_timeout)
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                "Cache clear failed",
                level=logging.WARNING,
                event="cache_clear_failed",
                error=f"{type(exc).__name__}: {exc}",
            )
            return False
        return True

    def _decode(self, raw: str) -> CachedArticles:
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as exc:
            log_event(
                logger,
                "Cache payload is not valid JSON",
                level=logging.WARNING,
                event="cache_corrupt",
                error=str(exc),
            )
            return CachedArticles()
        return decode_articles(data)


def encode_articles(articles: list[Article], written_at: datetime) -> str:
    return json.dumps(
        {
            "timestamp": written_at.isoformat(),
            "articles": [article.to_dict() for article in articles],
        },
        ensure_ascii=True,
    )


def decode_articles(data: Any) -> CachedArticles:
    """Rebuild cached articles from a decoded payload, skipping bad records.

    Accepts the {"timestamp", "articles"} envelope or a bare article list.
    """
    if isinstance(data, list):
        records, timestamp = data, None
    elif isinstance(data, dict):
        records, timestamp = data.get("articles"), data.get("timestamp")
    else:
        return CachedArticles()
    if not isinstance(records, list):
        return CachedArticles()

    articles: list[Article] = []
    skipped = 0
    for record in records:
        if not isinstance(record, dict):
            skipped += 1
            continue
        try:
            articles.append(Article.from_dict(record))
        except (TypeError, ValueError):
            skipped += 1
    if skipped:
        log_event(
            logger,
            "Skipped invalid cached articles",
            level=logging.WARNING,
            event="cache_records_skipped",
            skipped=skipped,
        )
    return CachedArticles(articles=articles, written_at=_parse_timestamp(timestamp))


def _parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_fresh(written_at: datetime | None, max_age_minutes: int, now: datetime | None = None) -> bool:
    """Return True if a cache written at written_at is younger than max_age_minutes."""
    if written_at is None:
        return False
    now = now or datetime.now(timezone.utc)
    return now - written_at < timedelta(minutes=max_age_minutes)
