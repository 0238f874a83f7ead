"""Tests for the LLM provider factory and the Gemini provider."""

import asyncio
import json

import httpx
import pytest

from wind_feed.config import ProviderConfig
from wind_feed.llm.providers.factory import available_providers, create_provider
from wind_feed.llm.providers.gemini import GeminiProvider, _extract_text


def test_available_providers_contains_expected_backends():
    assert "gemini" in available_providers()


def test_create_provider_gemini():
    provider = create_provider(ProviderConfig(name="gemini", api_key="test-key"))
    assert isinstance(provider, GeminiProvider)


def test_create_provider_without_key_returns_none(monkeypatch):
    monkeypatch.delenv("WIND_FEED_TEST_KEY", raising=False)
    cfg = ProviderConfig(name="gemini", api_key=None, api_key_env="WIND_FEED_TEST_KEY")
    assert create_provider(cfg) is None

    monkeypatch.setenv("WIND_FEED_TEST_KEY", "from-env")
    provider = create_provider(cfg)
    assert isinstance(provider, GeminiProvider)
    assert provider.api_key == "from-env"


def test_create_provider_rejects_unknown_backend():
    with pytest.raises(ValueError, match="Unsupported provider"):
        create_provider(ProviderConfig(name="unknown-provider", api_key="test-key"))


def test_gemini_requires_key():
    with pytest.raises(ValueError):
        GeminiProvider(ProviderConfig(), api_key=None)


def test_extract_text_joins_non_thought_parts():
    data = {
        "candidates": [
            {
                "content": {
                    "parts": [
                        {"thought": True, "text": "internal reasoning"},
                        {"text": '[{"index": 0'},
                        {"text": ', "urgency": "low"}]'},
                    ]
                }
            }
        ]
    }

    assert _extract_text(data) == '[{"index": 0, "urgency": "low"}]'


def test_extract_text_falls_back_to_all_text_when_only_thought():
    data = {"candidates": [{"content": {"parts": [{"thought": True, "text": "first"}, {"thought": True, "text": " second"}]}}]}
    assert _extract_text(data) == "first second"
    assert _extract_text({}) == ""


def test_gemini_complete_posts_generate_content():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["key"] = request.url.params.get("key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "[]"}]}}]})

    cfg = ProviderConfig(model="gemini-test", base_url="https://llm.example/")

    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await GeminiProvider(cfg, "secret-key", client).complete("categorize these")

    assert asyncio.run(_run()) == "[]"
    assert seen["path"] == "/v1beta/models/gemini-test:generateContent"
    assert seen["key"] == "secret-key"
    assert seen["body"]["contents"][0]["parts"][0]["text"] == "categorize these"
    assert seen["body"]["generationConfig"]["responseMimeType"] == "application/json"


def test_gemini_complete_raises_on_http_error():
    cfg = ProviderConfig(base_url="https://llm.example")

    async def _run():
        transport = httpx.MockTransport(lambda request: httpx.Response(429, json={"error": "quota"}))
        async with httpx.AsyncClient(transport=transport) as client:
            return await GeminiProvider(cfg, "k", client).complete("x")

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(_run())
