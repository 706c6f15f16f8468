"""LLM provider interface and error."""

from abc import ABC, abstractmethod
from typing import Any

from filementor.services.llm.prompts import build_suggestions


class LLMProvider(ABC):
    """Interface shared by all chat-completion backends."""

    supports_vision: bool = False

    @abstractmethod
    async def generate_response(
        self,
        history: list[dict[str, str]],
        text_context: str | None = None,
        images: list[dict[str, Any]] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Answer the last user message of ``history``.

        Raises:
            LLMProviderError: If the provider call fails
        """

    @abstractmethod
    async def generate_analysis(self, prompt: str) -> str:
        """Run a single-shot analysis prompt."""

    @abstractmethod
    def name(self) -> str: ...

    async def generate_suggestions(
        self,
        suggestion_type: str,
        filename: str,
        metadata: dict[str, Any] | None = None,
    ) -> list[str]:
        """Prompt suggestions for a file. Static, no model call."""
        return build_suggestions(suggestion_type, metadata)
