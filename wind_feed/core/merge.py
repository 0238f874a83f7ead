"""
Merging freshly fetched articles into the cached article set.

Fresh articles win on every field except the enrichment ones:
ai_categories is taken from the cache when the fresh copy has none, and a
scraped image in the cache is kept over a fresh placeholder.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

from .images import is_placeholder_image
from .dedup import dedup_by_url
from .types import Article

DEFAULT_RETENTION_DAYS = 7
DEFAULT_MAX_TOTAL = 400


def merge_article(fresh: Article, cached: Article) -> Article:
    ai_categories = fresh.ai_categories if fresh.ai_categories is not None else cached.ai_categories
    image = fresh.image
    if (not image or is_placeholder_image(image)) and cached.image and not is_placeholder_image(cached.image):
        image = cached.image
    return replace(fresh, ai_categories=ai_categories, image=image)


def within_retention(article: Article, now: datetime, retention_days: int) -> bool:
    return article.date >= now - timedelta(days=retention_days)


def merge_articles(
    fresh: list[Article],
    cached: list[Article],
    retention_days: int = DEFAULT_RETENTION_DAYS,
    max_total: int = DEFAULT_MAX_TOTAL,
    now: datetime | None = None,
) -> list[Article]:
    """Combine fresh and cached articles into the next cached set.

    Steps:
    1. Drop cached articles older than the retention window
    2. Union fresh and retained cached articles, fresh first, applying
       merge_article on URL conflicts
    3. Deduplicate by URL
    4. Sort newest first (URL breaks ties)
    5. Truncate to max_total

    Args:
        fresh: Articles from the current fetch cycle (never age-filtered)
        cached: Articles read back from the cache
        retention_days: Maximum age of a cached article
        max_total: Upper bound on the returned list
        now: Reference time for the retention window (defaults to UTC now)

    Returns:
        The merged, ordered and bounded article list
    """
    now = now or datetime.now(timezone.utc)
    retained = [a for a in cached if within_retention(a, now, retention_days)]
    cached_by_url: dict[str, Article] = {}
    for article in retained:
        cached_by_url.setdefault(article.url, article)

    combined: list[Article] = []
    for article in fresh:
        previous = cached_by_url.get(article.url)
        combined.append(merge_article(article, previous) if previous else article)
    combined.extend(retained)

    merged = dedup_by_url(combined)
    merged.sort(key=lambda a: a.url)
    merged.sort(key=lambda a: a.date, reverse=True)
    return merged[: max(0, max_total)]
