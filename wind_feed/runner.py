"""
Refresh pipeline orchestration for the wind-energy news feed.

This module coordinates one refresh cycle:
1. Fetch all configured feeds concurrently
2. Normalize items and drop irrelevant local-outlet articles
3. Deduplicate
4. Merge with the cached article set
5. Upgrade placeholder images and request AI categorization (best effort)
6. Write the merged set back to the cache

RefreshScheduler serializes cycles: a trigger that arrives while a cycle is
running is dropped.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from enum import Enum
import hmac
import logging
import time
from typing import Awaitable, Callable

import httpx
from rich.console import Console

from .cache import ArticleCache
from .classify import is_energy_relevant
from .config import AppConfig, get_refresh_secret
from .core.dedup import dedup_articles
from .core.merge import merge_articles
from .core.types import Article, FeedResult, RefreshReport
from .enrich.categorize import categorize_articles
from .enrich.images import enrich_images
from .errors import RefreshUnauthorized
from .fetch.feeds import fetch_all_feeds
from .llm.providers.base import CategorizationProvider
from .llm.providers.factory import create_provider
from .logging_utils import log_event
from .normalize import normalize_item, resolve_feed_context

logger = logging.getLogger(__name__)

RefreshFn = Callable[[], Awaitable[tuple[list[Article], RefreshReport]]]


def build_client(cfg: AppConfig) -> httpx.AsyncClient:
    """Create the shared HTTP client for one process."""
    return httpx.AsyncClient(
        headers={"User-Agent": cfg.fetch.user_agent},
        follow_redirects=True,
        trust_env=cfg.fetch.trust_env,
        timeout=cfg.fetch.timeout_seconds,
    )


def collect_articles(
    results: list[FeedResult],
    cfg: AppConfig,
    report: RefreshReport,
    fetched_at: datetime,
) -> list[Article]:
    """Normalize the items of every feed, in feed order.

    Rejected items are counted by reason; local-outlet items that are not
    about energy are dropped before deduplication.
    """
    articles: list[Article] = []
    for result in results:
        if result.error:
            report.feeds_failed += 1
            continue
        context = resolve_feed_context(result.feed_url, result.channel_title, cfg.feeds.local_sources)
        for raw in result.items:
            report.raw_items += 1
            outcome = normalize_item(raw, context, fetched_at)
            if not outcome.ok:
                report.record_rejection(outcome.reason or "unknown")
                continue
            if context.is_local_source and not is_energy_relevant(f"{raw.title} {raw.description}"):
                report.filtered_irrelevant += 1
                continue
            articles.append(outcome.article)
    report.normalized = len(articles) + report.filtered_irrelevant
    if report.rejected:
        log_event(
            logger,
            "Feed items rejected",
            level=logging.WARNING,
            event="items_rejected",
            rejected=dict(report.rejected),
        )
    return articles


async def run_refresh(
    cfg: AppConfig,
    cache: ArticleCache,
    client: httpx.AsyncClient,
    provider: CategorizationProvider | None = None,
    now: datetime | None = None,
) -> tuple[list[Article], RefreshReport]:
    """Run one complete refresh cycle.

    The merged result is written to the cache even when some feeds or
    enrichment steps failed.

    Args:
        cfg: Application configuration
        cache: Article cache to merge against and write to
        client: Shared async HTTP client
        provider: Categorization provider, or None to skip AI categorization
        now: Reference time (defaults to UTC now)

    Returns:
        Tuple of (merged articles, refresh report)
    """
    started = time.perf_counter()
    now = now or datetime.now(timezone.utc)
    report = RefreshReport(started_at=now)
    feed_urls = cfg.feeds.all_feeds()
    report.feeds_total = len(feed_urls)
    log_event(logger, "Refresh start", event="refresh_start", feeds=len(feed_urls))

    results = await fetch_all_feeds(client, feed_urls, cfg.fetch.timeout_seconds)
    fresh = collect_articles(results, cfg, report, now)
    fresh = dedup_articles(fresh, by_title=cfg.dedup.by_title)
    report.fresh = len(fresh)

    cached = await cache.load()
    report.cached = len(cached.articles)
    merged = merge_articles(
        fresh,
        cached.articles,
        retention_days=cfg.merge.retention_days,
        max_total=cfg.merge.max_total,
        now=now,
    )
    report.merged = len(merged)

    if cfg.enrich.images_enabled:
        report.images_enhanced = await enrich_images(
            client,
            merged,
            limit=cfg.enrich.image_limit,
            batch_size=cfg.enrich.image_batch_size,
            batch_delay=cfg.enrich.image_batch_delay_seconds,
            timeout=cfg.fetch.page_timeout_seconds,
            user_agent=cfg.fetch.user_agent,
        )
    if cfg.enrich.ai_enabled:
        report.ai_categorized = await categorize_articles(merged, provider, cfg.enrich.ai_max_batch)

    report.cache_written = await cache.save(merged, now=now)
    report.duration_seconds = round(time.perf_counter() - started, 3)
    log_event(
        logger,
        "Refresh complete",
        event="refresh_complete",
        feeds_total=report.feeds_total,
        feeds_failed=report.feeds_failed,
        fresh=report.fresh,
        cached=report.cached,
        merged=report.merged,
        images_enhanced=report.images_enhanced,
        ai_categorized=report.ai_categorized,
        cache_written=report.cache_written,
        duration_seconds=report.duration_seconds,
    )
    return merged, report


def make_refresh(
    cfg: AppConfig,
    cache: ArticleCache,
    client: httpx.AsyncClient,
    provider: CategorizationProvider | None = None,
) -> RefreshFn:
    """Bind run_refresh to its collaborators for use by the scheduler."""

    async def _refresh() -> tuple[list[Article], RefreshReport]:
        return await run_refresh(cfg, cache, client, provider)

    return _refresh


def build_provider(cfg: AppConfig, client: httpx.AsyncClient | None = None) -> CategorizationProvider | None:
    if not cfg.enrich.ai_enabled:
        return None
    provider = create_provider(cfg.provider, client)
    if provider is None:
        log_event(
            logger,
            "AI categorization disabled: no API key",
            event="categorization_disabled",
            api_key_env=cfg.provider.api_key_env,
        )
    return provider


class RefreshState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"


class RefreshScheduler:
    """Runs refresh cycles one at a time.

    Triggers come from startup, the interval timer and manual requests. A
    trigger received while a cycle is in flight is a no-op.
    """

    def __init__(
        self,
        refresh: RefreshFn,
        interval_seconds: float = 15 * 60,
        refresh_secret: str | None = None,
    ):
        self._refresh = refresh
        self.interval_seconds = interval_seconds
        self._refresh_secret = refresh_secret
        self._state = RefreshState.IDLE
        self._stop = asyncio.Event()
        self.last_articles: list[Article] = []
        self.last_report: RefreshReport | None = None
        self.last_fetch: datetime | None = None

    @classmethod
    def from_config(cls, cfg: AppConfig, refresh: RefreshFn) -> RefreshScheduler:
        return cls(
            refresh,
            interval_seconds=cfg.scheduler.interval_minutes * 60,
            refresh_secret=get_refresh_secret(cfg.scheduler),
        )

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def is_fetching(self) -> bool:
        return self._state is RefreshState.FETCHING

    async def trigger(self, reason: str = "manual") -> RefreshReport:
        if self._state is RefreshState.FETCHING:
            log_event(logger, "Refresh already running, skipping", event="refresh_skipped", reason=reason)
            return RefreshReport(skipped=True)

        self._state = RefreshState.FETCHING
        log_event(logger, "Refresh triggered", event="refresh_triggered", reason=reason)
        try:
            articles, report = await self._refresh()
        except Exception as exc:  # noqa: BLE001
            logger.exception(f"Refresh failed: {type(exc).__name__}: {exc}")
            report = RefreshReport()
        else:
            self.last_articles = articles
            self.last_fetch = report.started_at
        finally:
            self._state = RefreshState.IDLE
        self.last_report = report
        return report

    def authorize(self, secret: str | None) -> None:
        """Check a manual-refresh secret.

        Raises:
            RefreshUnauthorized: If a secret is configured and does not match
        """
        if not self._refresh_secret:
            return
        if not secret or not hmac.compare_digest(secret.encode("utf-8"), self._refresh_secret.encode("utf-8")):
            raise RefreshUnauthorized("Invalid refresh secret")

    async def force_refresh(self, secret: str | None = None) -> RefreshReport:
        self.authorize(secret)
        return await self.trigger("forced")

    async def run_forever(self) -> None:
        """Refresh at startup, then every interval until stop() is called."""
        self._stop.clear()
        await self.trigger("startup")
        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                await self.trigger("interval")

    def stop(self) -> None:
        self._stop.set()


def render_report(report: RefreshReport, console: Console) -> None:
    """Display refresh statistics to the console."""
    if report.skipped:
        console.print("[yellow]Refresh skipped[/yellow]: a refresh is already running")
        return
    console.print(
        "[bold]Refresh summary[/bold]: "
        f"feeds={report.feeds_total} (failed={report.feeds_failed}), "
        f"items={report.raw_items}, fresh={report.fresh}, cached={report.cached}, "
        f"merged={report.merged}, images={report.images_enhanced}, "
        f"ai={report.ai_categorized}, cache_written={report.cache_written}, "
        f"took={report.duration_seconds}s"
    )
    if report.rejected:
        console.print(f"Rejected items: {report.rejected}")
