"""DeepSeek provider (text only)."""

import logging
from typing import Any

from filementor.config import Settings, get_settings
from filementor.services.llm.openai_compat import OpenAICompatibleProvider

logger = logging.getLogger(__name__)


class DeepSeekProvider(OpenAICompatibleProvider):
    """Answers from the text context; image payloads are dropped."""

    provider_name = "deepseek"

    def __init__(self, settings: Settings | None = None, **kwargs) -> None:
        settings = settings or get_settings()
        super().__init__(
            api_key=settings.deepseek_api_key,
            model=settings.deepseek_model,
            base_url=settings.deepseek_base_url,
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
        logger.warning("DeepSeek has no vision support, ignoring %d image(s)", len(images))
        return await self.generate_response(history, text_context, None, metadata)
