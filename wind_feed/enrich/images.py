"""
Best-effort upgrade of placeholder images to real article images.

Article pages are fetched in small concurrent batches with a pause between
batches, so a refresh cycle never hammers origin servers or runs long.
Any failure for one page leaves that article's placeholder in place.
"""

from __future__ import annotations

import asyncio
import logging
import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup
import httpx

from ..core.images import is_placeholder_image, is_unwanted_image
from ..core.types import Article
from ..logging_utils import log_event

logger = logging.getLogger(__name__)

MIN_IMAGE_WIDTH = 300

_HERO_RE = re.compile(
    r"hero|featured|main-image|article-image|post-image|wp-post-image|lead-image",
    re.IGNORECASE,
)


def extract_image_from_html(html: str, base_url: str = "") -> str | None:
    """Find the best article image in an HTML page.

    Priority order:
    1. <meta property="og:image">
    2. <meta name="twitter:image">
    3. An <img> marked as hero/featured by its own or an ancestor's class/id
    4. The first <img> that is not unwanted and is at least MIN_IMAGE_WIDTH wide
       (images without a width attribute qualify)

    Args:
        html: Raw page HTML
        base_url: Page URL used to resolve relative image URLs

    Returns:
        Absolute image URL, or None if nothing suitable was found
    """
    if not html:
        return None
    soup = BeautifulSoup(html, "html.parser")

    for attr, names in (("property", ("og:image", "og:image:url")), ("name", ("twitter:image", "twitter:image:src"))):
        for name in names:
            candidate = _meta_content(soup, attr, name)
            if candidate:
                return candidate if not base_url else urljoin(base_url, candidate)

    images = soup.find_all("img")
    for img in images:
        if _is_hero(img):
            src = _img_src(img)
            if src and not is_unwanted_image(src):
                return urljoin(base_url, src) if base_url else src

    for img in images:
        src = _img_src(img)
        if not src or is_unwanted_image(src):
            continue
        if not _wide_enough(img):
            continue
        return urljoin(base_url, src) if base_url else src
    return None


def _meta_content(soup: BeautifulSoup, attr: str, name: str) -> str | None:
    # og:image is sometimes published under name= instead of property=;
    # share-card images fall through to the next tier
    for key in (attr, "name" if attr == "property" else "property"):
        tag = soup.find("meta", attrs={key: name})
        if tag is not None:
            content = (tag.get("content") or "").strip()
            if content and not is_unwanted_image(content):
                return content
    return None


def _img_src(img) -> str | None:
    for key in ("src", "data-src", "data-lazy-src"):
        value = (img.get(key) or "").strip()
        if value:
            return value
    return None


def _is_hero(img) -> bool:
    node = img
    depth = 0
    while node is not None and depth < 4:
        classes = node.get("class") or []
        marker = " ".join(classes) if isinstance(classes, list) else str(classes)
        marker = f"{marker} {node.get('id') or ''}"
        if _HERO_RE.search(marker):
            return True
        node = node.parent if getattr(node.parent, "name", None) not in (None, "[document]") else None
        depth += 1
    return False


def _wide_enough(img) -> bool:
    width = str(img.get("width") or "").strip().lower().removesuffix("px")
    if not width:
        return True
    try:
        return int(float(width)) >= MIN_IMAGE_WIDTH
    except ValueError:
        return True


async def fetch_article_image(
    client: httpx.AsyncClient,
    url: str,
    timeout: float,
    user_agent: str,
) -> str | None:
    """Fetch an article page and extract its image; returns None on any failure."""
    try:
        resp = await asyncio.wait_for(
            client.get(url, headers={"User-Agent": user_agent}, timeout=timeout, follow_redirects=True),
            timeout=timeout,
        )
        if resp.status_code >= 400:
            return None
        return extract_image_from_html(resp.text, str(resp.url))
    except Exception as exc:  # noqa: BLE001
        log_event(
            logger,
            "Image fetch failed",
            level=logging.DEBUG,
            event="image_fetch_failed",
            url=url,
            error=f"{type(exc).__name__}: {exc}",
        )
        return None


async def enrich_images(
    client: httpx.AsyncClient,
    articles: list[Article],
    limit: int = 30,
    batch_size: int = 5,
    batch_delay: float = 0.5,
    timeout: float = 5.0,
    user_agent: str = "Mozilla/5.0",
) -> int:
    """Replace placeholder images for up to `limit` articles.

    Articles are mutated in place.

    Returns:
        Number of articles whose image was upgraded
    """
    pending = [a for a in articles if not a.image or is_placeholder_image(a.image)][: max(0, limit)]
    if not pending:
        return 0
    batch_size = max(1, batch_size)
    enhanced = 0

    for start in range(0, len(pending), batch_size):
        batch = pending[start : start + batch_size]
        results = await asyncio.gather(
            *(fetch_article_image(client, a.url, timeout, user_agent) for a in batch),
            return_exceptions=True,
        )
        for article, result in zip(batch, results):
            if isinstance(result, str) and result and not is_unwanted_image(result):
                article.image = result
                enhanced += 1
        if start + batch_size < len(pending) and batch_delay > 0:
            await asyncio.sleep(batch_delay)

    log_event(
        logger,
        "Image enrichment complete",
        event="images_enriched",
        attempted=len(pending),
        enhanced=enhanced,
    )
    return enhanced
