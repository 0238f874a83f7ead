"""Google Gemini provider for batch article categorization."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ...config import ProviderConfig
from ...logging_utils import log_event, truncate_text
from .base import CategorizationProvider

logger = logging.getLogger(__name__)


class GeminiProvider(CategorizationProvider):
    """Gemini-backed provider calling the generateContent REST endpoint."""

    name = "gemini"

    def __init__(
        self,
        cfg: ProviderConfig,
        api_key: str | None,
        client: httpx.AsyncClient | None = None,
    ):
        if not api_key:
            raise ValueError("Missing Gemini API key")
        self.cfg = cfg
        self.api_key = api_key
        self.client = client

    async def complete(self, prompt: str) -> str:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": 0.2,
                "maxOutputTokens": 8192,
                "responseMimeType": "application/json",
            },
        }
        data = await self._post(payload)
        content = _extract_text(data)
        log_event(
            logger,
            "LLM response",
            level=logging.DEBUG,
            event="llm_response",
            model=self.cfg.model,
            raw_response=truncate_text(content, 4000),
        )
        return content

    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.cfg.base_url.rstrip('/')}/v1beta/models/{self.cfg.model}:generateContent"
        params = {"key": self.api_key}
        if self.client is not None:
            resp = await self.client.post(url, params=params, json=payload, timeout=self.cfg.timeout_seconds)
            resp.raise_for_status()
            return resp.json()
        async with httpx.AsyncClient(timeout=self.cfg.timeout_seconds, trust_env=self.cfg.trust_env) as client:
            resp = await client.post(url, params=params, json=payload)
            resp.raise_for_status()
            return resp.json()


def _extract_text(data: dict[str, Any]) -> str:
    """Join the text parts of the first candidate, skipping thought parts."""
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""
    texts = [p.get("text", "") for p in parts if isinstance(p, dict) and not p.get("thought")]
    if not any(texts):
        texts = [p.get("text", "") for p in parts if isinstance(p, dict)]
    return "".join(texts)
