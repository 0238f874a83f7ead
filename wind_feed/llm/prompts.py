"""Prompt rendering for batch article categorization."""

from __future__ import annotations

from ..core.types import Article


CATEGORIZATION_TEMPLATE = """\
You are an analyst for Irish wind and renewable energy news.
Categorize each article below. Respond with ONLY a JSON array containing
exactly one object per article, in this shape:

[{{"index": 0, "projectStage": "planning", "sentiment": "positive", "keyTopics": ["grid", "community"], "urgency": "medium"}}]

Allowed values:
- projectStage: "proposal", "planning", "approved", "construction", "operational", "policy", "other"
- sentiment: "positive", "neutral", "negative"
- keyTopics: 1 to 4 short lowercase topics
- urgency: "low", "medium", "high"

"index" must be the number shown before each article.

Articles:
{articles}
"""


def build_categorization_prompt(articles: list[Article], max_description_chars: int = 300) -> str:
    lines = []
    for idx, article in enumerate(articles):
        description = article.description[:max_description_chars]
        lines.append(
            f"[{idx}] Title: {article.title}\n"
            f"    Source: {article.source}\n"
            f"    Description: {description}"
        )
    return CATEGORIZATION_TEMPLATE.format(articles="\n".join(lines))
