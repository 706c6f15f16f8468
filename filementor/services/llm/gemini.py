"""Gemini through its OpenAI-compatible endpoint."""

from filementor.config import Settings, get_settings
from filementor.services.llm.openai_compat import OpenAICompatibleProvider


class GeminiProvider(OpenAICompatibleProvider):
    """Vision-capable provider."""

    provider_name = "gemini"
    supports_vision = True

    def __init__(self, settings: Settings | None = None, **kwargs) -> None:
        settings = settings or get_settings()
        super().__init__(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            settings=settings,
            **kwargs,
        )
