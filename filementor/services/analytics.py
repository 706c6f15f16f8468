"""AI file analysis with a per-(file, user, type) cache."""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable
from uuid import UUID

from jinja2 import Environment, FileSystemLoader

from filementor.config import Settings, get_settings
from filementor.core.quota import can_generate_analysis, normalize_tier
from filementor.errors import NotFoundError, UpgradeRequiredError, ValidationError
from filementor.models.file_analytics import AnalysisType
from filementor.services.llm.base import LLMProvider
from filementor.services.usage import UsageField, UsageTracker
from filementor.stores.analytics import AnalyticsStore

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates" / "prompts"

# Source text budget per analysis type
TEXT_BUDGETS: dict[str, int] = {
    AnalysisType.SUMMARY.value: 3000,
    AnalysisType.INSIGHTS.value: 3000,
    AnalysisType.QUESTIONS.value: 2500,
    AnalysisType.ACTION_ITEMS.value: 3000,
}

# Result key holding the generated text
RESULT_KEYS: dict[str, str] = {
    AnalysisType.SUMMARY.value: "summary",
    AnalysisType.INSIGHTS.value: "insights",
    AnalysisType.QUESTIONS.value: "questions",
    AnalysisType.ACTION_ITEMS.value: "actionItems",
}

LENGTH_INSTRUCTIONS = {
    "short": "a brief 2-3 sentence",
    "medium": "a comprehensive 1-2 paragraph",
    "long": "a detailed 3-4 paragraph",
}

DEFAULT_QUESTION_COUNT = 8


def get_file_type_label(mime_type: str | None) -> str:
    """Human label for a MIME type, used inside prompts."""
    mime_type = mime_type or ""
    if "spreadsheet" in mime_type or mime_type == "application/vnd.ms-excel":
        return "spreadsheet"
    if "presentation" in mime_type or mime_type == "application/vnd.ms-powerpoint":
        return "presentation"
    if mime_type == "application/pdf":
        return "PDF document"
    if "wordprocessing" in mime_type or "word" in mime_type:
        return "Word document"
    if mime_type.startswith("image/"):
        return "image"
    if "text/" in mime_type:
        return "text file"
    return "document"


@dataclass
class AnalysisResult:
    analysis: dict[str, Any]
    cached: bool
    generated_at: datetime


class FileAnalyticsService:
    """Generates and caches summaries, insights, questions and action items."""

    def __init__(
        self,
        store: AnalyticsStore,
        usage: UsageTracker,
        llm: LLMProvider,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.usage = usage
        self.llm = llm
        self.settings = settings or get_settings()
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=False,
        )

    async def _resolve_tier(self, user_id: UUID) -> str:
        try:
            return normalize_tier(await self.store.get_user_tier(user_id))
        except Exception:
            logger.exception("Failed to fetch tier for user %s, assuming free", user_id)
            return normalize_tier(None)

    def render_prompt(
        self,
        analysis_type: str,
        extracted_text: str,
        file_type: str,
        metadata: dict[str, Any],
        options: dict[str, Any],
    ) -> str:
        template = self.jinja_env.get_template(f"{analysis_type}.j2")
        length = options.get("length") or "medium"
        return template.render(
            text=extracted_text[: TEXT_BUDGETS[analysis_type]],
            file_label=get_file_type_label(file_type),
            metadata=metadata,
            length_instruction=LENGTH_INSTRUCTIONS.get(length, LENGTH_INSTRUCTIONS["medium"]),
            count=options.get("count") or DEFAULT_QUESTION_COUNT,
        )

    def _build_result(
        self,
        analysis_type: str,
        text: str,
        file_type: str,
        extracted_text: str,
        metadata: dict[str, Any],
        options: dict[str, Any],
        now: datetime,
    ) -> dict[str, Any]:
        result: dict[str, Any] = {
            RESULT_KEYS[analysis_type]: text,
            "fileType": file_type,
            "analysisDate": now.isoformat(),
        }
        if analysis_type == AnalysisType.SUMMARY.value:
            result["wordCount"] = len(extracted_text.split())
            result["metadata"] = metadata
        elif analysis_type == AnalysisType.INSIGHTS.value:
            result["metadata"] = metadata
        elif analysis_type == AnalysisType.QUESTIONS.value:
            result["questionCount"] = options.get("count") or DEFAULT_QUESTION_COUNT
        return result

    async def generate(
        self,
        user_id: UUID,
        file_id: UUID,
        analysis_type: str,
        options: dict[str, Any] | None = None,
    ) -> AnalysisResult:
        """Return a cached analysis or generate a new one.

        Raises:
            UpgradeRequiredError: Free tier callers, before any read or model call
            ValidationError: Unknown analysis type or file without text
            NotFoundError: File missing or not owned by the caller
            LLMProviderError: Generation failed
        """
        options = options or {}

        tier = await self._resolve_tier(user_id)
        if not can_generate_analysis(tier):
            raise UpgradeRequiredError(
                "AI Analysis is available for Pro and Legend users only",
                feature="ai_analysis",
                current_plan=tier,
            )

        if analysis_type not in RESULT_KEYS:
            raise ValidationError("Invalid analysis type")

        file = await self.store.get_file(user_id, file_id)
        if file is None:
            raise NotFoundError("File not found or access denied")
        if not file.extracted_text or not file.extracted_text.strip():
            raise ValidationError("File has no extracted text to analyze")

        now = self.clock()
        cached = await self.store.get_cached(file_id, user_id, analysis_type)
        ttl = timedelta(hours=self.settings.analysis_cache_ttl_hours)
        if cached is not None and now - cached.generated_at < ttl:
            logger.info("Analysis cache hit: %s for file %s", analysis_type, file_id)
            return AnalysisResult(
                analysis=cached.analysis_result,
                cached=True,
                generated_at=cached.generated_at,
            )

        metadata = file.file_metadata or {}
        if isinstance(metadata, str):
            try:
                metadata = json.loads(metadata)
            except ValueError:
                logger.warning("Could not parse metadata of file %s", file_id)
                metadata = {}

        prompt = self.render_prompt(
            analysis_type,
            file.extracted_text,
            file.file_type,
            metadata,
            options,
        )
        text = await self.llm.generate_analysis(prompt)
        result = self._build_result(
            analysis_type,
            text,
            file.file_type,
            file.extracted_text,
            metadata,
            options,
            now,
        )

        try:
            await self.store.save_analysis(file_id, user_id, analysis_type, result, tier, now)
        except Exception:
            logger.exception("Failed to save %s analysis for file %s", analysis_type, file_id)

        await self.usage.record_event(user_id, UsageField.ANALYSIS_GENERATED, tier=tier)

        return AnalysisResult(analysis=result, cached=False, generated_at=now)
