"""
Query layer serving the cached article set.

ArticleService answers article-list requests from the cache while it is
fresh, refreshes through the scheduler when it is stale or a forced refresh
is requested, then applies filters, search and pagination. HTTP wiring is
left to the embedding application; responses are plain JSON-ready dicts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import math
import time
from typing import Any, Iterable

from .cache import ArticleCache, is_fresh
from .config import AppConfig
from .core.images import is_placeholder_image
from .core.types import Article
from .runner import RefreshScheduler

MAX_PAGE_SIZE = 100


@dataclass
class ArticleQuery:
    """Parameters of an article-list request.

    Attributes:
        provinces: Keep articles in any of these provinces (None = all)
        tags: Keep articles carrying any of these tags (None = all)
        category: Keep articles with this category (None = all)
        search: Case-insensitive text matched against title, description and source
        page: 1-based page number
        page_size: Articles per page (clamped to [1, MAX_PAGE_SIZE])
        force: Refresh before answering
        secret: Manual-refresh secret, required with force when one is configured
    """

    provinces: list[str] | None = None
    tags: list[str] | None = None
    category: str | None = None
    search: str | None = None
    page: int = 1
    page_size: int = 50
    force: bool = False
    secret: str | None = field(default=None, repr=False)


def filter_articles(
    articles: Iterable[Article],
    provinces: Iterable[str] | None = None,
    tags: Iterable[str] | None = None,
    category: str | None = None,
    search: str | None = None,
) -> list[Article]:
    province_set = {p.lower() for p in provinces} if provinces else None
    tag_set = {t.lower() for t in tags} if tags else None
    category = category.lower() if category else None
    needle = search.strip().lower() if search else ""

    kept = []
    for article in articles:
        if province_set is not None and article.province.lower() not in province_set:
            continue
        if tag_set is not None and not tag_set.intersection(t.lower() for t in article.tags):
            continue
        if category and article.category.lower() != category:
            continue
        if needle and not (
            needle in article.title.lower()
            or needle in article.description.lower()
            or needle in article.source.lower()
        ):
            continue
        kept.append(article)
    return kept


def paginate(items: list[Article], page: int, page_size: int) -> tuple[list[Article], int, int, int]:
    """Slice one page out of items.

    Returns:
        Tuple of (page items, page, page_size, total_pages) with page and
        page_size clamped to valid values
    """
    page_size = min(max(1, page_size), MAX_PAGE_SIZE)
    total_pages = max(1, math.ceil(len(items) / page_size))
    page = min(max(1, page), total_pages)
    start = (page - 1) * page_size
    return items[start : start + page_size], page, page_size, total_pages


def enrichment_coverage(articles: list[Article]) -> dict[str, Any]:
    total = len(articles)
    ai = sum(1 for a in articles if a.ai_categories is not None)
    images = sum(1 for a in articles if a.image and not is_placeholder_image(a.image))
    return {
        "aiCategorized": ai,
        "realImages": images,
        "imageCoverage": round(images / total, 3) if total else 0.0,
    }


class ArticleService:
    """Serves article lists with the cache-freshness policy applied."""

    def __init__(self, cfg: AppConfig, cache: ArticleCache, scheduler: RefreshScheduler):
        self.cfg = cfg
        self.cache = cache
        self.scheduler = scheduler

    async def get_articles(self, query: ArticleQuery | None = None) -> dict[str, Any]:
        """Answer an article-list request.

        Raises:
            RefreshUnauthorized: If force is requested with a wrong secret
        """
        query = query or ArticleQuery()
        started = time.perf_counter()
        if query.force:
            self.scheduler.authorize(query.secret)

        cached = await self.cache.load()
        articles = cached.articles
        last_update: datetime | None = cached.written_at
        cache_hit = True
        fresh_count = 0

        stale = not articles or not is_fresh(cached.written_at, self.cfg.cache.fresh_minutes)
        if query.force or stale:
            report = await self.scheduler.trigger("forced" if query.force else "stale_cache")
            if not report.skipped and report.merged:
                articles = self.scheduler.last_articles
                last_update = report.started_at
                cache_hit = False
                fresh_count = report.fresh

        filtered = filter_articles(
            articles,
            provinces=query.provinces,
            tags=query.tags,
            category=query.category,
            search=query.search,
        )
        page_items, page, page_size, total_pages = paginate(filtered, query.page, query.page_size)

        response: dict[str, Any] = {
            "articles": [a.to_dict() for a in page_items],
            "count": len(filtered),
            "totalArticles": len(articles),
            "page": page,
            "pageSize": page_size,
            "totalPages": total_pages,
            "lastUpdate": last_update.isoformat() if last_update else None,
            "cached": cache_hit,
            "fresh": fresh_count,
        }
        response.update(enrichment_coverage(articles))
        response["processingTime"] = int((time.perf_counter() - started) * 1000)
        return response

    async def health(self) -> dict[str, Any]:
        cached = await self.cache.load()
        last_fetch = self.scheduler.last_fetch or cached.written_at
        return {
            "status": "ok",
            "lastFetch": last_fetch.isoformat() if last_fetch else None,
            "articleCount": len(cached.articles),
            "isFetching": self.scheduler.is_fetching,
        }
