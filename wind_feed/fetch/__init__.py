"""
Feed and page fetching.

This package handles RSS retrieval and parsing for the refresh cycle.
"""

from .feeds import fetch_all_feeds, fetch_feed, parse_feed

__all__ = [
    "fetch_all_feeds",
    "fetch_feed",
    "parse_feed",
]
