"""
Best-effort AI categorization of articles.

Articles without ai_categories are sent to the provider in one bounded
batch. The response must be a JSON array of
{index, projectStage, sentiment, keyTopics, urgency} objects matched back to
the batch by position. Anything else fails the whole batch: those articles
stay uncategorized and are picked up again on the next refresh.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from ..core.types import AICategories, Article
from ..errors import CategorizationError
from ..llm.prompts import build_categorization_prompt
from ..llm.providers.base import CategorizationProvider
from ..logging_utils import log_event, truncate_text

logger = logging.getLogger(__name__)


def pending_articles(articles: list[Article], max_batch: int) -> list[Article]:
    return [a for a in articles if a.ai_categories is None][: max(0, max_batch)]


def parse_categorization_response(content: str, count: int) -> dict[int, AICategories]:
    """Parse a categorization response into categories keyed by batch index.

    Entries whose index is missing or outside [0, count) are ignored.

    Raises:
        CategorizationError: If the content is not a JSON array of objects
    """
    try:
        data = _parse_json_array(content)
    except json.JSONDecodeError as exc:
        raise CategorizationError(f"Response is not valid JSON: {exc.msg}") from exc
    if not isinstance(data, list):
        raise CategorizationError(f"Expected a JSON array, got {type(data).__name__}")
    if any(not isinstance(entry, dict) for entry in data):
        raise CategorizationError("Response array contains non-object entries")

    results: dict[int, AICategories] = {}
    for entry in data:
        index = _as_index(entry.get("index"))
        if index is None or not 0 <= index < count:
            continue
        results.setdefault(index, AICategories.from_dict(entry))
    return results


def _as_index(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _parse_json_array(content: str) -> Any:
    if not content or not content.strip():
        raise json.JSONDecodeError("Empty content", content or "", 0)
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        return json.loads(_extract_json_snippet(content))


def _extract_json_snippet(content: str) -> str:
    fence = _extract_fenced_json(content)
    if fence:
        return fence
    start = content.find("[")
    end = content.rfind("]")
    if start == -1 or end == -1 or end <= start:
        raise json.JSONDecodeError("No JSON array found", content, 0)
    return content[start : end + 1]


def _extract_fenced_json(content: str) -> str | None:
    lines = content.splitlines()
    start_idx = None
    for idx, line in enumerate(lines):
        if line.strip().startswith("```"):
            start_idx = idx + 1
            break
    if start_idx is None:
        return None
    for idx in range(start_idx, len(lines)):
        if lines[idx].strip().startswith("```"):
            snippet = "\n".join(lines[start_idx:idx]).strip()
            return snippet or None
    return None


async def categorize_articles(
    articles: list[Article],
    provider: CategorizationProvider | None,
    max_batch: int = 40,
) -> int:
    """Attach ai_categories to up to max_batch uncategorized articles.

    Articles are mutated in place. Provider, transport and parse failures
    are logged and leave the batch untouched.

    Returns:
        Number of articles categorized
    """
    if provider is None:
        log_event(logger, "Categorization skipped: no provider", level=logging.DEBUG, event="categorization_skipped")
        return 0
    batch = pending_articles(articles, max_batch)
    if not batch:
        return 0

    prompt = build_categorization_prompt(batch)
    content = ""
    try:
        content = await provider.complete(prompt)
        categories = parse_categorization_response(content, len(batch))
    except CategorizationError as exc:
        log_event(
            logger,
            "Categorization response rejected",
            level=logging.WARNING,
            event="categorization_failed",
            status="parse_error",
            error=str(exc),
            raw_response=truncate_text(content, 2000),
            batch_size=len(batch),
        )
        return 0
    except httpx.HTTPError as exc:
        log_event(
            logger,
            "Categorization request failed",
            level=logging.WARNING,
            event="categorization_failed",
            status="provider_error",
            error=f"{type(exc).__name__}: {exc}",
            batch_size=len(batch),
        )
        return 0
    except Exception as exc:  # noqa: BLE001
        log_event(
            logger,
            "Categorization failed",
            level=logging.WARNING,
            event="categorization_failed",
            status="unknown_error",
            error=f"{type(exc).__name__}: {exc}",
            batch_size=len(batch),
        )
        return 0

    for index, ai in categories.items():
        batch[index].ai_categories = ai
    log_event(
        logger,
        "Categorization complete",
        event="categorization_complete",
        batch_size=len(batch),
        categorized=len(categories),
    )
    return len(categories)
