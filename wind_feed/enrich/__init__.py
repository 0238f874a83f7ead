"""
Best-effort enrichment steps.

Image scraping and AI categorization both run on a bounded subset of
articles per refresh and never fail the refresh.
"""

from .categorize import categorize_articles, parse_categorization_response
from .images import enrich_images, extract_image_from_html, fetch_article_image

__all__ = [
    "categorize_articles",
    "enrich_images",
    "extract_image_from_html",
    "fetch_article_image",
    "parse_categorization_response",
]
