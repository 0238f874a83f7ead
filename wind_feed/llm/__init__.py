"""LLM categorization providers and prompts."""

from .prompts import build_categorization_prompt
from .providers.base import CategorizationProvider
from .providers.factory import available_providers, create_provider
from .providers.gemini import GeminiProvider

__all__ = [
    "CategorizationProvider",
    "GeminiProvider",
    "available_providers",
    "build_categorization_prompt",
    "create_provider",
]
