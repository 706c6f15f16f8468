"""Groq provider (text only)."""

from typing import Any

from filementor.config import Settings, get_settings
from filementor.services.llm.openai_compat import OpenAICompatibleProvider
from filementor.services.llm.prompts import IMAGE_NOT_SUPPORTED


class GroqProvider(OpenAICompatibleProvider):
    provider_name = "groq"

    def __init__(self, settings: Settings | None = None, **kwargs) -> None:
        settings = settings or get_settings()
        super().__init__(
            api_key=settings.groq_api_key,
            model=settings.groq_model,
            base_url=settings.groq_base_url,
            settings=settings,
            **kwargs,
        )

    async def generate_image_response(
        self,
        history: list[dict[str, str]],
        images: list[dict[str, Any]],
        text_context: str | None,
        metadata: dict[str, Any] | None,
    ) -> str:
        return IMAGE_NOT_SUPPORTED
