"""
Normalization of raw feed items into canonical Article records.

This module owns every defaulting rule for feed items: HTML stripping,
description truncation, source resolution, date parsing and image
selection (inline feed image or keyword-chosen placeholder).
"""

from __future__ import annotations

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
import html
import logging
import re
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from .classify import classify_category, classify_province, classify_tags
from .config import LocalSource
from .core.images import is_unwanted_image, placeholder_image
from .core.types import Article, FeedContext, ItemResult, RawFeedItem

logger = logging.getLogger(__name__)

DESCRIPTION_LIMIT = 200
ELLIPSIS = "..."
DEFAULT_SOURCE = "Google News"

_WS_RE = re.compile(r"\s+")


def strip_html(text: str) -> str:
    if not text:
        return ""
    if "<" in text:
        text = BeautifulSoup(text, "html.parser").get_text(separator=" ")
    text = html.unescape(text)
    return _WS_RE.sub(" ", text).strip()


def truncate_description(text: str, limit: int = DESCRIPTION_LIMIT) -> str:
    return text[:limit] + ELLIPSIS


def extract_inline_image(description_html: str) -> str | None:
    if not description_html or "<img" not in description_html.lower():
        return None
    soup = BeautifulSoup(description_html, "html.parser")
    for img in soup.find_all("img"):
        src = (img.get("src") or "").strip()
        if src and not is_unwanted_image(src):
            return src
    return None


def resolve_feed_context(
    feed_url: str,
    channel_title: str | None,
    local_sources: list[LocalSource],
) -> FeedContext:
    """Build the FeedContext for a feed.

    A feed whose host ends with a configured local-outlet domain is a local
    source; every other feed uses its channel title, or "Google News".
    """
    host = (urlparse(feed_url).hostname or "").lower()
    for source in local_sources:
        domain = source.domain.lower()
        if host == domain or host.endswith("." + domain):
            return FeedContext(feed_url=feed_url, source_name=source.name, is_local_source=True)
    return FeedContext(
        feed_url=feed_url,
        source_name=(channel_title or "").strip() or DEFAULT_SOURCE,
        is_local_source=False,
    )


def parse_date(value: str | None, default: datetime) -> datetime:
    """Parse an RFC 822 or ISO 8601 date into an aware UTC datetime."""
    if not value:
        return default
    value = value.strip()
    parsed: datetime | None = None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        parsed = None
    if parsed is None:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return default
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def normalize_item(
    raw: RawFeedItem,
    context: FeedContext,
    fetched_at: datetime | None = None,
) -> ItemResult:
    """Convert a raw feed item into an Article.

    Failures are confined to the item: the returned ItemResult carries the
    reason and the caller moves on to the next item.
    """
    fetched_at = fetched_at or datetime.now(timezone.utc)
    title = strip_html(raw.title or "")
    if not title:
        return ItemResult.failure("missing_title")
    link = (raw.link or "").strip()
    if not link:
        return ItemResult.failure("missing_link")

    try:
        description_html = raw.description or ""
        image = raw.image if raw.image and not is_unwanted_image(raw.image) else None
        if image is None:
            image = extract_inline_image(description_html)
        if image is None:
            image = placeholder_image(title, description_html)

        text = f"{title} {description_html}"
        article = Article(
            title=title,
            description=truncate_description(strip_html(description_html)),
            source=(raw.source or "").strip() or context.source_name,
            date=parse_date(raw.pub_date, fetched_at),
            url=link,
            image=image,
            tags=classify_tags(text),
            category=classify_category(text),
            province=classify_province(text),
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning(f"Skipping item {link}: {type(exc).__name__}: {exc}")
        return ItemResult.failure("invalid_item")
    return ItemResult.success(article)
