"""Chat turn handling and session management."""

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from filementor.config import Settings, get_settings
from filementor.core.context import FileContextSource, build_chat_context
from filementor.core.quota import get_tier_limits, normalize_tier
from filementor.errors import (
    NotFoundError,
    QuotaExceededError,
    UpgradeRequiredError,
    UpstreamError,
)
from filementor.models.chat_session import ChatSession
from filementor.models.file import File
from filementor.models.message import Message, MessageRole
from filementor.schemas.chat import ChatRequest
from filementor.services.llm.base import LLMProvider
from filementor.services.usage import UsageField, UsageTracker
from filementor.stores.chat import ChatStore

logger = logging.getLogger(__name__)

MULTI_FILE_FEATURE = "multi_file_chat"


@dataclass
class ChatTurnResult:
    response: str
    user_message: Message
    ai_message: Message
    usage: dict[str, Any]


def to_context_source(file: File) -> FileContextSource:
    return FileContextSource(
        filename=file.original_name or file.filename,
        file_type=file.file_type,
        content=file.extracted_text,
        metadata=file.file_metadata,
        image_data=file.image_data,
    )


class ChatService:
    """Runs one chat turn: quota, persistence, context and generation."""

    def __init__(
        self,
        store: ChatStore,
        usage: UsageTracker,
        llm: LLMProvider,
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.usage = usage
        self.llm = llm
        self.settings = settings or get_settings()

    async def _resolve_tier(self, user_id: UUID) -> str:
        try:
            return normalize_tier(await self.store.get_user_tier(user_id))
        except Exception:
            logger.exception("Failed to fetch tier for user %s, assuming free", user_id)
            return normalize_tier(None)

    async def _get_owned_session(self, user_id: UUID, session_id: UUID) -> ChatSession:
        chat_session = await self.store.get_session(user_id, session_id)
        if chat_session is None:
            raise NotFoundError("Chat session not found")
        return chat_session

    async def handle_turn(self, user_id: UUID, request: ChatRequest) -> ChatTurnResult:
        """Answer one user message.

        Nothing is written when the quota or file-count check fails. Once
        the user message is saved it stays, even if generation fails.

        Raises:
            NotFoundError: Session missing or owned by someone else
            UpgradeRequiredError: More files attached than the tier allows
            QuotaExceededError: Daily prompt limit reached
            UpstreamError: Message persistence or generation failed
        """
        await self._get_owned_session(user_id, request.session_id)

        tier = await self._resolve_tier(user_id)
        limits = get_tier_limits(tier)
        requested_ids = request.requested_file_ids

        if len(requested_ids) > limits.max_files_per_session:
            raise UpgradeRequiredError(
                f"Your {tier} plan allows {limits.max_files_per_session} "
                f"file(s) per chat. Upgrade to attach more.",
                feature="multi_file",
                current_plan=tier,
            )

        status = await self.usage.check_daily_limit(user_id, tier)
        if status.has_reached_limit:
            raise QuotaExceededError(limit=status.limit, used=status.current_usage, tier=tier)

        metadata = None
        if len(requested_ids) > 1:
            metadata = {
                "attachedFiles": [str(file_id) for file_id in requested_ids],
                "fileCount": len(requested_ids),
            }

        try:
            user_message = await self.store.add_message(
                request.session_id,
                user_id,
                MessageRole.USER.value,
                request.message,
                tier,
                metadata,
            )
        except Exception as e:
            logger.exception("Failed to save user message in session %s", request.session_id)
            raise UpstreamError("Failed to save user message") from e

        file_ids = requested_ids or await self.store.session_file_ids(request.session_id)
        files = await self.store.load_files(user_id, file_ids)
        context = build_chat_context(
            [to_context_source(f) for f in files],
            requested_count=len(requested_ids) if requested_ids else None,
        )

        history = [
            {"role": m.role, "content": m.content}
            for m in await self.store.list_history(request.session_id, exclude_id=user_message.id)
        ]
        history.append({"role": MessageRole.USER.value, "content": request.message})

        response = await self.llm.generate_response(
            history,
            text_context=context.text,
            images=context.images,
            metadata=context.metadata,
        )

        try:
            ai_message = await self.store.add_message(
                request.session_id,
                user_id,
                MessageRole.ASSISTANT.value,
                response,
                tier,
            )
        except Exception as e:
            logger.exception("Failed to save AI response in session %s", request.session_id)
            raise UpstreamError("Failed to save AI response") from e

        await self._after_turn(user_id, request.session_id, tier, files, metadata)

        return ChatTurnResult(
            response=response,
            user_message=user_message,
            ai_message=ai_message,
            usage={"used": status.current_usage + 1, "limit": status.limit, "tier": tier},
        )

    async def _after_turn(
        self,
        user_id: UUID,
        session_id: UUID,
        tier: str,
        files: list[File],
        metadata: dict[str, Any] | None,
    ) -> None:
        """Usage and freshness bookkeeping. Failures are logged only."""
        await self.usage.record_event(user_id, UsageField.PROMPTS_USED, tier=tier)

        try:
            await self.store.touch_session(session_id)
        except Exception:
            logger.warning("Failed to bump session %s", session_id, exc_info=True)

        if len(files) > 1:
            try:
                await self.store.record_feature_usage(
                    user_id,
                    MULTI_FILE_FEATURE,
                    "pro",
                    self.usage.today(),
                    metadata,
                )
            except Exception:
                logger.warning("Failed to record multi-file usage for %s", user_id, exc_info=True)

        if files:
            try:
                await self.store.touch_files([f.id for f in files])
            except Exception:
                logger.warning("Failed to update last_accessed on files", exc_info=True)

    # Sessions

    async def create_session(
        self,
        user_id: UUID,
        name: str,
        file_ids: list[UUID] | None = None,
    ) -> tuple[ChatSession, list[UUID]]:
        tier = await self._resolve_tier(user_id)
        file_ids = list(dict.fromkeys(file_ids or []))
        limits = get_tier_limits(tier)
        if len(file_ids) > limits.max_files_per_session:
            raise UpgradeRequiredError(
                f"Your {tier} plan allows {limits.max_files_per_session} file(s) per chat",
                feature="multi_file",
                current_plan=tier,
            )

        owned = [f.id for f in await self.store.load_files(user_id, file_ids)]
        if len(owned) != len(file_ids):
            raise NotFoundError("File not found or access denied")

        chat_session = await self.store.create_session(user_id, name, tier, owned)
        logger.info("Created chat session %s with %d file(s)", chat_session.id, len(owned))
        return chat_session, owned

    async def list_sessions(self, user_id: UUID) -> list[tuple[ChatSession, list[UUID]]]:
        sessions = await self.store.list_sessions(user_id)
        return [(s, await self.store.session_file_ids(s.id)) for s in sessions]

    async def list_messages(self, user_id: UUID, session_id: UUID) -> list[Message]:
        await self._get_owned_session(user_id, session_id)
        return await self.store.list_history(session_id)

    async def attach_files(
        self,
        user_id: UUID,
        session_id: UUID,
        file_ids: list[UUID],
    ) -> tuple[ChatSession, list[UUID]]:
        chat_session = await self._get_owned_session(user_id, session_id)
        file_ids = list(dict.fromkeys(file_ids))

        owned = [f.id for f in await self.store.load_files(user_id, file_ids)]
        if len(owned) != len(file_ids):
            raise NotFoundError("File not found or access denied")

        tier = await self._resolve_tier(user_id)
        limits = get_tier_limits(tier)
        current = await self.store.session_file_ids(session_id)
        combined = set(current) | set(owned)
        if len(combined) > limits.max_files_per_session:
            raise UpgradeRequiredError(
                f"Your {tier} plan allows {limits.max_files_per_session} file(s) per chat",
                feature="multi_file",
                current_plan=tier,
            )

        await self.store.attach_files(chat_session, owned)
        return chat_session, await self.store.session_file_ids(session_id)

    async def delete_session(self, user_id: UUID, session_id: UUID) -> None:
        chat_session = await self._get_owned_session(user_id, session_id)
        await self.store.delete_session(chat_session)
        logger.info("Deleted chat session %s", session_id)
