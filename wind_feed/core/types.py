"""
Core data types for the wind-energy news feed.

This module defines the fundamental data structures used throughout the pipeline:
- RawFeedItem: One item as parsed from an RSS document
- FeedContext: Per-feed defaults applied during normalization
- AICategories: Optional LLM categorization attached to an article
- Article: The canonical normalized news record
- ItemResult: Per-item success/failure outcome of normalization
- FeedResult: Outcome of fetching and parsing one feed
- RefreshReport: Statistics collected during one refresh cycle
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class RawFeedItem:
    """Represents one item parsed from an RSS feed.

    Attributes:
        title: The item headline (may be empty in malformed feeds)
        link: The item link (may be empty in malformed feeds)
        pub_date: Raw publish date string as found in the feed
        description: Raw description, usually HTML
        source: Publisher name from a <source> element (Google News)
        image: Image URL from media:content, media:thumbnail or an image enclosure
    """
    title: str = ""
    link: str = ""
    pub_date: str | None = None
    description: str = ""
    source: str | None = None
    image: str | None = None


@dataclass
class FeedContext:
    """Feed-level defaults for the items of one feed.

    Attributes:
        feed_url: The URL the feed was fetched from
        source_name: Publisher name used when an item carries none
        is_local_source: True for known local outlets (energy filter applies)
    """
    feed_url: str
    source_name: str = "Google News"
    is_local_source: bool = False


@dataclass
class AICategories:
    """LLM-provided categorization of an article.

    Attributes:
        project_stage: e.g. "planning", "construction", "operational"
        sentiment: e.g. "positive", "neutral", "negative"
        key_topics: Distinct topic labels, order preserved
        urgency: e.g. "low", "medium", "high"
    """
    project_stage: str = ""
    sentiment: str = ""
    key_topics: list[str] = field(default_factory=list)
    urgency: str = ""

    def __post_init__(self) -> None:
        self.key_topics = list(dict.fromkeys(t for t in self.key_topics if t))

    def to_dict(self) -> dict[str, Any]:
        return {
            "projectStage": self.project_stage,
            "sentiment": self.sentiment,
            "keyTopics": list(self.key_topics),
            "urgency": self.urgency,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AICategories:
        topics = data.get("keyTopics") or []
        if not isinstance(topics, list):
            topics = [topics]
        return cls(
            project_stage=str(data.get("projectStage") or ""),
            sentiment=str(data.get("sentiment") or ""),
            key_topics=[str(t).strip() for t in topics if str(t).strip()],
            urgency=str(data.get("urgency") or ""),
        )


@dataclass
class Article:
    """The canonical normalized news record.

    Attributes:
        title: The article headline
        description: Plain-text description, truncated with an ellipsis
        source: Human-readable publisher name
        date: Publish time (timezone-aware, UTC)
        url: Canonical article link, the identity key for merging
        image: Inline, scraped or placeholder image URL
        tags: Heuristic labels, never empty
        category: "offshore" or "onshore"
        province: Irish province or "National"
        ai_categories: Optional enrichment, sticky across merges
    """
    title: str
    description: str
    source: str
    date: datetime
    url: str
    image: str | None = None
    tags: list[str] = field(default_factory=list)
    category: str = "onshore"
    province: str = "National"
    ai_categories: AICategories | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "source": self.source,
            "date": self.date.isoformat(),
            "url": self.url,
            "image": self.image,
            "tags": list(self.tags),
            "category": self.category,
            "province": self.province,
            "aiCategories": self.ai_categories.to_dict() if self.ai_categories else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Article:
        """Rebuild an article from its served/cached JSON shape.

        Raises:
            ValueError: If title or url is missing, or the date is unparsable
        """
        title = data.get("title")
        url = data.get("url")
        if not title or not url:
            raise ValueError("Cached article is missing title or url")
        date = datetime.fromisoformat(str(data.get("date")))
        if date.tzinfo is None:
            date = date.replace(tzinfo=timezone.utc)
        ai_raw = data.get("aiCategories")
        category = data.get("category") or "onshore"
        raw_tags = data.get("tags")
        tags = [str(t) for t in raw_tags if str(t).strip()] if isinstance(raw_tags, list) else []
        tags = tags or [category]
        return cls(
            title=str(title),
            description=str(data.get("description") or ""),
            source=str(data.get("source") or ""),
            date=date,
            url=str(url),
            image=data.get("image"),
            tags=tags,
            category=category,
            province=data.get("province") or "National",
            ai_categories=AICategories.from_dict(ai_raw) if isinstance(ai_raw, dict) else None,
        )


@dataclass
class ItemResult:
    """Outcome of normalizing one raw feed item.

    Either article is populated (ok=True) or reason is populated (ok=False),
    but never both.
    """
    ok: bool
    article: Article | None = None
    reason: str | None = None

    @classmethod
    def success(cls, article: Article) -> ItemResult:
        return cls(ok=True, article=article)

    @classmethod
    def failure(cls, reason: str) -> ItemResult:
        return cls(ok=False, reason=reason)


@dataclass
class FeedResult:
    """Result of fetching and parsing one feed.

    Attributes:
        feed_url: The feed that was fetched
        items: Parsed items, empty on failure
        channel_title: The channel <title>, if any
        error: Error message if the fetch or parse failed, None on success
    """
    feed_url: str
    items: list[RawFeedItem] = field(default_factory=list)
    channel_title: str | None = None
    error: str | None = None


@dataclass
class RefreshReport:
    """Statistics collected during one refresh cycle."""
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    feeds_total: int = 0
    feeds_failed: int = 0
    raw_items: int = 0
    normalized: int = 0
    rejected: dict[str, int] = field(default_factory=dict)
    filtered_irrelevant: int = 0
    fresh: int = 0
    cached: int = 0
    merged: int = 0
    images_enhanced: int = 0
    ai_categorized: int = 0
    cache_written: bool = False
    duration_seconds: float = 0.0
    skipped: bool = False

    def record_rejection(self, reason: str) -> None:
        self.rejected[reason] = self.rejected.get(reason, 0) + 1
