"""LLM provider factory: select provider based on config."""

from filementor.config import Settings, get_settings
from filementor.services.llm.base import LLMProvider
from filementor.services.llm.deepseek import DeepSeekProvider
from filementor.services.llm.gemini import GeminiProvider
from filementor.services.llm.groq import GroqProvider

_PROVIDERS: dict[str, type[LLMProvider]] = {
    "gemini": GeminiProvider,
    "groq": GroqProvider,
    "deepseek": DeepSeekProvider,
}


def get_llm_provider(settings: Settings | None = None) -> LLMProvider:
    """Build the configured provider.

    Raises:
        ValueError: If ``llm_provider`` names no known provider
    """
    settings = settings or get_settings()
    cls = _PROVIDERS.get(settings.llm_provider)
    if cls is None:
        raise ValueError(f"Unknown LLM provider: {settings.llm_provider}")
    return cls(settings=settings)
