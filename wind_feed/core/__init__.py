"""
Core domain models and business logic.

This package contains data types and the dedup/merge rules that are
independent of any specific pipeline stage.
"""

from .types import (
    AICategories,
    Article,
    FeedContext,
    FeedResult,
    ItemResult,
    RawFeedItem,
    RefreshReport,
)
from .dedup import dedup_articles, dedup_by_title, dedup_by_url
from .merge import merge_article, merge_articles

__all__ = [
    "AICategories",
    "Article",
    "FeedContext",
    "FeedResult",
    "ItemResult",
    "RawFeedItem",
    "RefreshReport",
    "dedup_articles",
    "dedup_by_title",
    "dedup_by_url",
    "merge_article",
    "merge_articles",
]
