"""Chat-completion backend over any OpenAI-compatible endpoint."""

import logging
from typing import Any

from openai import APIError, AsyncOpenAI

from filementor.config import Settings, get_settings
from filementor.errors import LLMProviderError
from filementor.services.llm.base import LLMProvider
from filementor.services.llm.prompts import build_image_prompt, build_system_prompt

logger = logging.getLogger(__name__)


class OpenAICompatibleProvider(LLMProvider):
    """Provider talking to Gemini, Groq or DeepSeek through the openai SDK."""

    provider_name = "openai_compatible"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        settings: Settings | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.model = model
        self.client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=self.settings.llm_timeout_seconds,
        )

    def name(self) -> str:
        return self.provider_name

    async def _complete(self, messages: list[dict[str, Any]]) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=self.settings.llm_max_tokens,
                temperature=self.settings.llm_temperature,
            )
        except APIError as e:
            logger.error("%s completion failed: %s", self.name(), e)
            raise LLMProviderError("Failed to generate AI response") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMProviderError("Empty response from AI provider")
        return content

    @staticmethod
    def _chat_messages(history: list[dict[str, str]]) -> list[dict[str, str]]:
        return [
            {
                "role": "assistant" if m.get("role") == "assistant" else "user",
                "content": m.get("content", ""),
            }
            for m in history
        ]

    async def generate_response(
        self,
        history: list[dict[str, str]],
        text_context: str | None = None,
        images: list[dict[str, Any]] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        if images:
            return await self.generate_image_response(history, images, text_context, metadata)

        system = build_system_prompt(
            text_context,
            metadata,
            self.settings.chat_context_max_chars,
        )
        messages = [{"role": "system", "content": system}, *self._chat_messages(history)]
        return await self._complete(messages)

    async def generate_image_response(
        self,
        history: list[dict[str, str]],
        images: list[dict[str, Any]],
        text_context: str | None,
        metadata: dict[str, Any] | None,
    ) -> str:
        """Vision path: the last user message plus images in one turn."""
        question = history[-1]["content"] if history else ""
        content: list[dict[str, Any]] = [{"type": "text", "text": question}]
        for image in images:
            data = image.get("data")
            if not data:
                continue
            mime_type = image.get("mimeType") or "image/png"
            content.append({
                "type": "image_url",
                "image_url": {"url": f"data:{mime_type};base64,{data}"},
            })

        messages = [
            {"role": "system", "content": build_image_prompt(text_context, metadata)},
            {"role": "user", "content": content},
        ]
        return await self._complete(messages)

    async def generate_analysis(self, prompt: str) -> str:
        return await self._complete([{"role": "user", "content": prompt}])
