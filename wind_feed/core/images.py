"""
Image URL heuristics shared by normalization, merging and enrichment.

Placeholder images are chosen deterministically from article keywords;
"unwanted" images are data URIs and URLs that look like site chrome
(logos, tracking pixels, share buttons) rather than article photos.
"""

from __future__ import annotations


UNWANTED_IMAGE_PATTERNS = [
    "logo", "icon", "avatar", "pixel", "tracking",
    "button", "badge", "banner", "ad.", "ads.",
    "spacer", "blank", "1x1", "placeholder",
    "social", "share", "facebook", "twitter", "linkedin",
]
STRICT_IMAGE_PATTERNS = [
    "gravatar", "emoji", ".gif", "gstatic", "ggpht", "googleusercontent",
]

PLACEHOLDER_OFFSHORE = "https://images.unsplash.com/photo-1532601224476-15c79f2f7a51?w=800&q=80"
PLACEHOLDER_ONSHORE = "https://images.unsplash.com/photo-1466611653911-95081537e5b7?w=800&q=80"
PLACEHOLDER_PLANNING = "https://images.unsplash.com/photo-1454165804606-c3d57bc86b40?w=800&q=80"
PLACEHOLDER_CONSTRUCTION = "https://images.unsplash.com/photo-1503387762-592deb58ef4e?w=800&q=80"
PLACEHOLDER_DEFAULT = "https://images.unsplash.com/photo-1473341304170-971dccb5ac1e?w=800&q=80"

# Ordered: the first rule whose keywords match picks the placeholder.
_PLACEHOLDER_RULES: list[tuple[tuple[str, ...], str]] = [
    (("offshore",), PLACEHOLDER_OFFSHORE),
    (("onshore",), PLACEHOLDER_ONSHORE),
    (("planning", "approval"), PLACEHOLDER_PLANNING),
    (("construction", "building"), PLACEHOLDER_CONSTRUCTION),
]

PLACEHOLDER_IMAGES = frozenset(
    [url for _, url in _PLACEHOLDER_RULES] + [PLACEHOLDER_DEFAULT]
)


def is_unwanted_image(url: str | None, strict: bool = False) -> bool:
    """Return True if an image URL is missing or looks like site chrome.

    Args:
        url: Candidate image URL
        strict: Also reject avatars, emoji, GIFs and Google-hosted thumbnails

    Returns:
        True for data URIs and URLs matching the denylist
    """
    if not url:
        return True
    lowered = url.lower()
    if lowered.startswith("data:"):
        return True
    patterns = UNWANTED_IMAGE_PATTERNS + STRICT_IMAGE_PATTERNS if strict else UNWANTED_IMAGE_PATTERNS
    return any(pattern in lowered for pattern in patterns)


def placeholder_image(title: str, description: str) -> str:
    text = f"{title} {description}".lower()
    for keywords, url in _PLACEHOLDER_RULES:
        if any(keyword in text for keyword in keywords):
            return url
    return PLACEHOLDER_DEFAULT


def is_placeholder_image(url: str | None) -> bool:
    return url in PLACEHOLDER_IMAGES
