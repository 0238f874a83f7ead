"""
RSS feed fetching and parsing.

Feeds are fetched concurrently through a shared httpx.AsyncClient, one task
per feed, each bounded by its own timeout. A failing feed is logged and
reported in its FeedResult; it never aborts the other feeds.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import feedparser
import httpx

from ..core.types import FeedResult, RawFeedItem
from ..logging_utils import log_event

logger = logging.getLogger(__name__)

DEFAULT_FEED_TIMEOUT = 3.0


def parse_feed(document: str | bytes) -> tuple[str | None, list[RawFeedItem]]:
    """Parse an RSS document into its channel title and raw items.

    Malformed documents and documents without channel items yield
    (None, []) instead of raising.

    Args:
        document: The RSS document body; bytes let feedparser honour the
            XML encoding declaration

    Returns:
        Tuple of (channel title or None, list of RawFeedItem)
    """
    if not document or not document.strip():
        return None, []
    if isinstance(document, str):
        # a str is treated as a URL or file path by feedparser
        document = document.encode("utf-8")
    try:
        parsed = feedparser.parse(document)
    except Exception as exc:  # noqa: BLE001
        logger.warning(f"Feed parse failed: {type(exc).__name__}: {exc}")
        return None, []

    entries = parsed.get("entries") or []
    if not entries:
        return None, []

    channel_title = (parsed.get("feed") or {}).get("title") or None
    items = [_raw_item(entry) for entry in entries]
    return channel_title, items


def _raw_item(entry: Any) -> RawFeedItem:
    source = entry.get("source") or {}
    return RawFeedItem(
        title=entry.get("title") or "",
        link=entry.get("link") or "",
        pub_date=entry.get("published") or entry.get("updated"),
        description=entry.get("summary") or entry.get("description") or "",
        source=source.get("title") if hasattr(source, "get") else None,
        image=_media_image(entry),
    )


def _media_image(entry: Any) -> str | None:
    """Return the first image URL advertised through media or enclosure tags."""
    for key in ("media_content", "media_thumbnail"):
        for media in entry.get(key) or []:
            url = media.get("url")
            medium = (media.get("medium") or media.get("type") or "image").lower()
            if url and "image" in medium:
                return url
    for enclosure in entry.get("enclosures") or []:
        if (enclosure.get("type") or "").lower().startswith("image/") and enclosure.get("href"):
            return enclosure.get("href")
    return None


async def fetch_feed(
    client: httpx.AsyncClient,
    feed_url: str,
    timeout: float = DEFAULT_FEED_TIMEOUT,
) -> FeedResult:
    """Fetch and parse one feed, never raising.

    The whole request (connect, read, parse) is cancelled once the timeout
    elapses.

    Args:
        client: Shared async HTTP client
        feed_url: The RSS feed URL
        timeout: Timeout in seconds for this feed

    Returns:
        FeedResult with items on success, or an error message and no items
    """

    async def _get() -> tuple[str | None, list[RawFeedItem]]:
        resp = await client.get(feed_url, timeout=timeout)
        resp.raise_for_status()
        return parse_feed(resp.content)

    try:
        channel_title, items = await asyncio.wait_for(_get(), timeout=timeout)
    except asyncio.TimeoutError:
        error = f"TimeoutError: no response within {timeout}s"
    except httpx.HTTPStatusError as exc:
        error = f"HTTPStatusError: {exc.response.status_code}"
    except Exception as exc:  # noqa: BLE001
        error = f"{type(exc).__name__}: {exc}"
    else:
        log_event(
            logger,
            "Feed fetched",
            level=logging.DEBUG,
            event="feed_fetched",
            feed_url=feed_url,
            item_count=len(items),
        )
        return FeedResult(feed_url=feed_url, items=items, channel_title=channel_title)

    log_event(
        logger,
        "Feed fetch failed",
        level=logging.WARNING,
        event="feed_fetch_failed",
        feed_url=feed_url,
        error=error,
    )
    return FeedResult(feed_url=feed_url, error=error)


async def fetch_all_feeds(
    client: httpx.AsyncClient,
    feed_urls: list[str],
    timeout: float = DEFAULT_FEED_TIMEOUT,
) -> list[FeedResult]:
    """Fetch every feed concurrently; results keep the configured feed order."""
    tasks = [asyncio.create_task(fetch_feed(client, url, timeout)) for url in feed_urls]
    return list(await asyncio.gather(*tasks))
