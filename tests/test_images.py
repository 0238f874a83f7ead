"""Tests for article-page image extraction and batched enrichment."""

import asyncio
from datetime import datetime, timezone

import httpx

from wind_feed.core.images import PLACEHOLDER_DEFAULT, PLACEHOLDER_OFFSHORE
from wind_feed.core.types import Article
from wind_feed.enrich.images import enrich_images, extract_image_from_html


def test_og_image_wins():
    html = """
    <html><head>
      <meta name="twitter:image" content="https://cdn.example/twitter-card-photo.jpg">
      <meta property="og:image" content="/media/og-photo.jpg">
    </head><body><img src="https://cdn.example/body.jpg"></body></html>
    """
    assert extract_image_from_html(html, "https://news.example/a/1") == "https://news.example/media/og-photo.jpg"


def test_share_card_og_image_falls_through_to_twitter_image():
    html = """
    <html><head>
      <meta property="og:image" content="https://cdn.example/img/social-share-card.jpg">
      <meta name="twitter:image" content="https://cdn.example/img/turbine-photo.jpg">
    </head><body><div class="hero"><img src="https://cdn.example/img/hero.jpg"></div></body></html>
    """
    assert extract_image_from_html(html) == "https://cdn.example/img/turbine-photo.jpg"

    no_meta_fallback = html.replace("turbine-photo", "logo")
    assert extract_image_from_html(no_meta_fallback) == "https://cdn.example/img/hero.jpg"


def test_twitter_image_second():
    html = '<meta name="twitter:image" content="https://cdn.example/photo.jpg"><img src="https://cdn.example/body.jpg">'
    assert extract_image_from_html(html) == "https://cdn.example/photo.jpg"


def test_hero_image_before_first_image():
    html = """
    <body>
      <img src="https://cdn.example/inline.jpg">
      <figure class="article-hero"><img src="https://cdn.example/hero.jpg"></figure>
    </body>
    """
    assert extract_image_from_html(html) == "https://cdn.example/hero.jpg"


def test_first_wide_image_skips_chrome():
    html = """
    <img src="https://cdn.example/site-logo.png">
    <img src="https://cdn.example/thumb.jpg" width="120">
    <img src="https://cdn.example/story.jpg" width="640">
    """
    assert extract_image_from_html(html) == "https://cdn.example/story.jpg"
    assert extract_image_from_html("<p>No images</p>") is None
    assert extract_image_from_html("") is None


def _article(url: str, image: str = PLACEHOLDER_DEFAULT) -> Article:
    return Article(
        title="Title",
        description="",
        source="Test",
        date=datetime(2026, 10, 17, tzinfo=timezone.utc),
        url=url,
        image=image,
        tags=["onshore"],
    )


def test_enrich_images_in_batches_with_failures():
    requested = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        if request.url.path.endswith("/broken"):
            raise httpx.ConnectError("refused", request=request)
        if request.url.path.endswith("/gone"):
            return httpx.Response(404)
        return httpx.Response(
            200,
            text=f'<meta property="og:image" content="https://cdn.example{request.url.path}.jpg">',
        )

    articles = [
        _article("https://news.example/a"),
        _article("https://news.example/broken"),
        _article("https://news.example/gone", image=PLACEHOLDER_OFFSHORE),
        _article("https://news.example/real", image="https://cdn.example/already.jpg"),
        _article("https://news.example/b"),
        _article("https://news.example/c"),
    ]

    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await enrich_images(client, articles, limit=4, batch_size=2, batch_delay=0)

    enhanced = asyncio.run(_run())

    assert enhanced == 2
    assert articles[0].image == "https://cdn.example/a.jpg"
    assert articles[1].image == PLACEHOLDER_DEFAULT
    assert articles[2].image == PLACEHOLDER_OFFSHORE
    assert articles[3].image == "https://cdn.example/already.jpg"
    assert articles[4].image == "https://cdn.example/b.jpg"
    assert articles[5].image == PLACEHOLDER_DEFAULT
    assert "https://news.example/real" not in requested
    assert len(requested) == 4


def test_enrich_images_nothing_pending():
    articles = [_article("https://news.example/real", image="https://cdn.example/x.jpg")]

    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(500))) as client:
            return await enrich_images(client, articles)

    assert asyncio.run(_run()) == 0


def test_enrich_images_uses_next_tier_when_og_image_is_a_share_card():
    page = """
    <meta property="og:image" content="https://cdn.example/img/social-share-card.jpg">
    <meta name="twitter:image" content="https://cdn.example/img/turbine-photo.jpg">
    """
    articles = [_article("https://news.example/story")]

    async def _run():
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text=page))
        async with httpx.AsyncClient(transport=transport) as client:
            return await enrich_images(client, articles, batch_delay=0)

    assert asyncio.run(_run()) == 1
    assert articles[0].image == "https://cdn.example/img/turbine-photo.jpg"
