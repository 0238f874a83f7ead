"""
Wind Feed - Irish wind-energy news aggregator.

This package fetches RSS feeds about Irish wind energy, classifies and
deduplicates the articles, merges them into a cached set with best-effort
image and AI enrichment, and serves filtered, paginated article lists.

Main entry point is the CLI via `wind-feed` commands.

Example:
    $ wind-feed refresh
    $ wind-feed articles --province Munster --tag offshore
"""

__all__ = [
    "__version__",
    "Article",
    "ArticleCache",
    "ArticleQuery",
    "ArticleService",
    "RefreshScheduler",
    "merge_articles",
    "dedup_articles",
    "run_refresh",
]
__version__ = "0.1.0"

from .api import ArticleQuery, ArticleService
from .cache import ArticleCache
from .core.dedup import dedup_articles
from .core.merge import merge_articles
from .core.types import Article
from .runner import RefreshScheduler, run_refresh
