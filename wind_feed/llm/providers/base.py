"""Abstract interface for LLM-driven article categorization."""

from __future__ import annotations

from abc import ABC, abstractmethod


class CategorizationProvider(ABC):
    """Provider interface: one prompt in, the model's raw text out."""

    name: str = "base"

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Return the model's text response for a prompt.

        Raises:
            httpx.HTTPError: On transport failures or non-2xx responses
        """
        raise NotImplementedError
