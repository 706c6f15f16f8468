"""LLM providers."""

from filementor.services.llm.base import LLMProvider
from filementor.services.llm.deepseek import DeepSeekProvider
from filementor.services.llm.factory import get_llm_provider
from filementor.services.llm.gemini import GeminiProvider
from filementor.services.llm.groq import GroqProvider
from filementor.services.llm.openai_compat import OpenAICompatibleProvider
from filementor.services.llm.prompts import suggestion_type_for

__all__ = [
    "LLMProvider",
    "OpenAICompatibleProvider",
    "GeminiProvider",
    "GroqProvider",
    "DeepSeekProvider",
    "get_llm_provider",
    "suggestion_type_for",
]
