"""Tests for batch AI categorization and response parsing."""

import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest

from wind_feed.core.types import AICategories, Article
from wind_feed.enrich.categorize import (
    categorize_articles,
    parse_categorization_response,
    pending_articles,
)
from wind_feed.errors import CategorizationError
from wind_feed.llm.prompts import build_categorization_prompt
from wind_feed.llm.providers.base import CategorizationProvider


class _StubProvider(CategorizationProvider):
    """Returns a canned response and records prompts."""

    name = "stub"

    def __init__(self, response: str = "", error: Exception | None = None):
        self.response = response
        self.error = error
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


def _articles(count: int) -> list[Article]:
    return [
        Article(
            title=f"Article {i}",
            description=f"Description {i}...",
            source="Test",
            date=datetime(2026, 10, 17, tzinfo=timezone.utc),
            url=f"https://news.example/{i}",
            tags=["onshore"],
        )
        for i in range(count)
    ]


def _entry(index, stage="planning"):
    return {
        "index": index,
        "projectStage": stage,
        "sentiment": "positive",
        "keyTopics": ["grid", "community", "grid"],
        "urgency": "medium",
    }


def test_non_object_array_fails_batch_without_raising():
    articles = _articles(3)
    provider = _StubProvider(json.dumps(["not", "an", "object"]))

    categorized = asyncio.run(categorize_articles(articles, provider))

    assert categorized == 0
    assert all(a.ai_categories is None for a in articles)


def test_valid_response_attaches_categories():
    articles = _articles(3)
    provider = _StubProvider(json.dumps([_entry(0), _entry(2, stage="construction")]))

    categorized = asyncio.run(categorize_articles(articles, provider))

    assert categorized == 2
    assert articles[0].ai_categories.project_stage == "planning"
    assert articles[0].ai_categories.key_topics == ["grid", "community"]
    assert articles[1].ai_categories is None
    assert articles[2].ai_categories.project_stage == "construction"
    assert "[2] Title: Article 2" in provider.prompts[0]


def test_fenced_response_is_accepted():
    content = "Here you go:\n```json\n" + json.dumps([_entry(0)]) + "\n```\n"
    result = parse_categorization_response(content, 1)
    assert result[0].urgency == "medium"


def test_out_of_range_indices_are_ignored():
    result = parse_categorization_response(json.dumps([_entry(5), _entry(-1), {"projectStage": "x"}, _entry("1")]), 2)
    assert list(result) == [1]


def test_parse_rejects_non_array_and_garbage():
    with pytest.raises(CategorizationError):
        parse_categorization_response('{"index": 0}', 1)
    with pytest.raises(CategorizationError):
        parse_categorization_response("no json here", 1)
    with pytest.raises(CategorizationError):
        parse_categorization_response("", 1)


def test_provider_http_error_is_contained():
    request = httpx.Request("POST", "https://llm.example/generate")
    error = httpx.HTTPStatusError("503", request=request, response=httpx.Response(503, request=request))
    articles = _articles(2)

    assert asyncio.run(categorize_articles(articles, _StubProvider(error=error))) == 0
    assert asyncio.run(categorize_articles(articles, _StubProvider(error=RuntimeError("boom")))) == 0
    assert all(a.ai_categories is None for a in articles)


def test_no_provider_skips():
    assert asyncio.run(categorize_articles(_articles(2), None)) == 0


def test_only_uncategorized_articles_are_sent_up_to_batch_limit():
    articles = _articles(5)
    articles[0].ai_categories = AICategories(project_stage="operational")
    provider = _StubProvider(json.dumps([_entry(0), _entry(1)]))

    assert [a.url for a in pending_articles(articles, 2)] == ["https://news.example/1", "https://news.example/2"]
    assert asyncio.run(categorize_articles(articles, provider, max_batch=2)) == 2
    assert articles[0].ai_categories.project_stage == "operational"
    assert articles[1].ai_categories.project_stage == "planning"
    assert articles[3].ai_categories is None


def test_prompt_truncates_descriptions():
    article = _articles(1)[0]
    article.description = "x" * 500
    prompt = build_categorization_prompt([article], max_description_chars=50)
    assert "x" * 50 in prompt
    assert "x" * 51 not in prompt
