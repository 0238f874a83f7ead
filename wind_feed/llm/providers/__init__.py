from .base import CategorizationProvider
from .factory import available_providers, create_provider
from .gemini import GeminiProvider

__all__ = [
    "CategorizationProvider",
    "GeminiProvider",
    "available_providers",
    "create_provider",
]
