"""
Article deduplication by URL and, optionally, by title.

This module removes duplicate articles based on:
1. Exact URL matches (the authoritative identity of an article)
2. Case-insensitive, trimmed title matches (same story republished under
   a different URL)

Both passes keep the first article seen, so earlier feeds in the configured
list take priority.
"""

from __future__ import annotations

from typing import Callable, Iterable

from .types import Article


def dedup_articles(articles: Iterable[Article], by_title: bool = False) -> list[Article]:
    """Remove duplicate articles from a list.

    Args:
        articles: Articles in priority order
        by_title: Also collapse articles whose normalized titles match

    Returns:
        Deduplicated list of articles, preserving original order
    """
    kept = dedup_by_url(articles)
    if by_title:
        kept = dedup_by_title(kept)
    return kept


def dedup_by_url(articles: Iterable[Article]) -> list[Article]:
    return _dedup(articles, lambda article: article.url)


def dedup_by_title(articles: Iterable[Article]) -> list[Article]:
    return _dedup(articles, title_key)


def title_key(article: Article) -> str:
    return article.title.strip().lower()


def _dedup(articles: Iterable[Article], key: Callable[[Article], str]) -> list[Article]:
    seen: set[str] = set()
    kept: list[Article] = []
    for article in articles:
        value = key(article)
        if value in seen:
            continue
        seen.add(value)
        kept.append(article)
    return kept
