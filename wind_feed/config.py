"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- FeedsConfig: Feed URLs and the local-outlet table
- FetchConfig: HTTP fetching settings
- DedupConfig: Deduplication settings
- MergeConfig: Retention window and article cap
- CacheConfig: Cache store backend and freshness settings
- EnrichConfig: Image scraping and AI categorization limits
- ProviderConfig: LLM provider settings
- SchedulerConfig: Refresh interval and manual-refresh secret
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from typing import Any

import yaml


GOOGLE_NEWS_FEEDS = [
    "https://news.google.com/rss/search?q=wind+farm+ireland&hl=en-IE&gl=IE&ceid=IE:en",
    "https://news.google.com/rss/search?q=wind+energy+ireland&hl=en-IE&gl=IE&ceid=IE:en",
    "https://news.google.com/rss/search?q=offshore+wind+ireland&hl=en-IE&gl=IE&ceid=IE:en",
    "https://news.google.com/rss/search?q=onshore+wind+ireland&hl=en-IE&gl=IE&ceid=IE:en",
    "https://news.google.com/rss/search?q=renewable+energy+ireland&hl=en-IE&gl=IE&ceid=IE:en",
]


@dataclass
class LocalSource:
    """A known local news outlet.

    Attributes:
        domain: Host suffix matched against the feed URL (e.g. "irishexaminer.com")
        name: Publisher name shown for articles from this outlet
    """

    domain: str
    name: str


@dataclass
class FeedsConfig:
    """Configuration for the feeds to aggregate.

    Attributes:
        google_news_feeds: Google News search feeds (relevance guaranteed by the query)
        local_feeds: Feeds from local outlets, filtered for energy relevance
        local_sources: Domain table used to recognise local outlets
    """

    google_news_feeds: list[str] = field(default_factory=lambda: list(GOOGLE_NEWS_FEEDS))
    local_feeds: list[str] = field(default_factory=list)
    local_sources: list[LocalSource] = field(default_factory=list)

    def all_feeds(self) -> list[str]:
        return list(self.google_news_feeds) + list(self.local_feeds)


@dataclass
class FetchConfig:
    """Configuration for HTTP fetching.

    Attributes:
        timeout_seconds: Per-feed request timeout
        page_timeout_seconds: Timeout for article page fetches (image scraping)
        trust_env: Whether to respect system proxy settings
        user_agent: HTTP User-Agent header string
    """

    timeout_seconds: float = 3.0
    page_timeout_seconds: float = 5.0
    trust_env: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )


@dataclass
class DedupConfig:
    """Configuration for article deduplication.

    Attributes:
        by_title: Also collapse articles with the same (case-insensitive) title
    """

    by_title: bool = False


@dataclass
class MergeConfig:
    """Configuration for merging fresh articles into the cache.

    Attributes:
        retention_days: Maximum age of a cached article
        max_total: Maximum number of articles kept after a merge
    """

    retention_days: int = 7
    max_total: int = 400


@dataclass
class CacheConfig:
    """Configuration for the article cache.

    Attributes:
        backend: "file" for a JSON file store, "memory" for a process-local store
        directory: Directory used by the file backend
        key: Key the serialized article list is stored under
        ttl_days: Store time-to-live for the cached list
        op_timeout_seconds: Timeout applied to every store operation
        fresh_minutes: Age under which the cache is served without refetching
    """

    backend: str = "file"
    directory: str = ".cache/wind_feed"
    key: str = "articles-cache"
    ttl_days: int = 7
    op_timeout_seconds: float = 2.0
    fresh_minutes: int = 10


@dataclass
class EnrichConfig:
    """Configuration for best-effort enrichment.

    Attributes:
        images_enabled: Whether to scrape article pages for real images
        image_limit: Maximum number of placeholder images to upgrade per cycle
        image_batch_size: Number of pages fetched concurrently
        image_batch_delay_seconds: Pause between image batches
        ai_enabled: Whether to request AI categorization
        ai_max_batch: Maximum number of articles sent in one categorization call
    """

    images_enabled: bool = True
    image_limit: int = 30
    image_batch_size: int = 5
    image_batch_delay_seconds: float = 0.5
    ai_enabled: bool = True
    ai_max_batch: int = 40


@dataclass
class ProviderConfig:
    """Configuration for the LLM provider.

    Attributes:
        name: Provider name ("gemini" currently supported)
        model: Model identifier
        api_key_env: Environment variable name containing the API key
        base_url: Base URL for the provider API
        api_key: Optional inline API key (overrides env var)
        timeout_seconds: Request timeout for one categorization call
        trust_env: Whether to respect system proxy settings for API requests
    """

    name: str = "gemini"
    model: str = "gemini-1.5-flash"
    api_key_env: str = "GEMINI_API_KEY"
    base_url: str = "https://generativelanguage.googleapis.com"
    api_key: str | None = None
    timeout_seconds: float = 30.0
    trust_env: bool = True


@dataclass
class SchedulerConfig:
    """Configuration for periodic refresh.

    Attributes:
        interval_minutes: Minutes between scheduled refreshes
        refresh_secret_env: Environment variable holding the manual-refresh secret
        refresh_secret: Optional inline secret (overrides env var)
    """

    interval_minutes: int = 15
    refresh_secret_env: str = "CRON_SECRET"
    refresh_secret: str | None = None


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the log file
        directory: Directory the log file is written to
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "wind_feed.jsonl"
    directory: str = "logs"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    feeds: FeedsConfig = field(default_factory=FeedsConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    dedup: DedupConfig = field(default_factory=DedupConfig)
    merge: MergeConfig = field(default_factory=MergeConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    enrich: EnrichConfig = field(default_factory=EnrichConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    feeds_data = dict(data["feeds"])
    feeds_data["local_sources"] = [
        src if isinstance(src, LocalSource) else LocalSource(**src)
        for src in feeds_data.get("local_sources") or []
    ]
    return AppConfig(
        feeds=FeedsConfig(**feeds_data),
        fetch=FetchConfig(**data["fetch"]),
        dedup=DedupConfig(**data["dedup"]),
        merge=MergeConfig(**data["merge"]),
        cache=CacheConfig(**data["cache"]),
        enrich=EnrichConfig(**data["enrich"]),
        provider=ProviderConfig(**data["provider"]),
        scheduler=SchedulerConfig(**data["scheduler"]),
        logging=LoggingConfig(**data["logging"]),
    )


def get_api_key(cfg: ProviderConfig) -> str | None:
    """Get API key from inline config or environment variable."""
    if cfg.api_key:
        return cfg.api_key
    return os.getenv(cfg.api_key_env)


def get_refresh_secret(cfg: SchedulerConfig) -> str | None:
    """Get the manual-refresh secret from inline config or environment variable."""
    if cfg.refresh_secret:
        return cfg.refresh_secret
    return os.getenv(cfg.refresh_secret_env) or None
