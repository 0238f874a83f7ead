"""Provider factory and registry for LLM backends."""

from __future__ import annotations

import httpx

from ...config import ProviderConfig, get_api_key
from .base import CategorizationProvider
from .gemini import GeminiProvider


ProviderBuilder = type[CategorizationProvider]

_PROVIDER_REGISTRY: dict[str, ProviderBuilder] = {
    "gemini": GeminiProvider,
}


def available_providers() -> list[str]:
    """Return the set of registered provider names."""
    return sorted(_PROVIDER_REGISTRY.keys())


def create_provider(
    provider_cfg: ProviderConfig,
    client: httpx.AsyncClient | None = None,
) -> CategorizationProvider | None:
    """Build a provider instance from runtime config.

    Returns None when no API key is configured, so categorization can be
    skipped instead of failing the refresh.

    Raises:
        ValueError: If the provider name is not registered
    """
    name = provider_cfg.name.lower().strip()
    builder = _PROVIDER_REGISTRY.get(name)
    if builder is None:
        supported = ", ".join(available_providers())
        raise ValueError(f"Unsupported provider: {provider_cfg.name}. Supported: {supported}")
    api_key = get_api_key(provider_cfg)
    if not api_key:
        return None
    return builder(provider_cfg, api_key, client)
