"""File upload, extraction and retrieval."""

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable
from uuid import UUID, uuid4

from filementor.config import Settings, get_settings
from filementor.core.parsing import (
    UnsupportedFileType,
    extract_document,
    get_extractor,
    resolve_content_type,
)
from filementor.core.quota import get_tier_limits, normalize_tier
from filementor.errors import NotFoundError, UpstreamError, ValidationError
from filementor.models.file import File, ProcessingStatus
from filementor.services.llm.base import LLMProvider
from filementor.services.llm.prompts import suggestion_type_for
from filementor.services.storage import StorageService
from filementor.services.usage import UsageField, UsageTracker
from filementor.stores.files import FileStore

logger = logging.getLogger(__name__)

# (function name, *args) -> job
Enqueue = Callable[..., Awaitable[Any]]

PROCESS_FILE_TASK = "process_file"


def safe_filename(filename: str | None) -> str:
    name = Path(filename or "").name.strip()
    return name or "unnamed"


class FileService:
    """Owns the lifecycle of uploaded files."""

    def __init__(
        self,
        store: FileStore,
        storage: StorageService,
        usage: UsageTracker | None = None,
        enqueue: Enqueue | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.storage = storage
        self.usage = usage
        self.enqueue = enqueue
        self.settings = settings or get_settings()

    async def upload(
        self,
        user_id: UUID,
        filename: str | None,
        content: bytes,
        content_type: str | None,
    ) -> File:
        """Validate, store and queue a file for extraction.

        Raises:
            ValidationError: Empty, unsupported or oversized file
            UpstreamError: Object storage write failed
        """
        original_name = safe_filename(filename)

        if not content:
            raise ValidationError("Empty file")

        try:
            get_extractor(content_type, original_name)
        except UnsupportedFileType as e:
            raise ValidationError(str(e)) from e
        resolved_type = resolve_content_type(content_type, original_name)

        try:
            tier = normalize_tier(await self.store.get_user_tier(user_id))
        except Exception:
            logger.exception("Failed to fetch tier for user %s, assuming free", user_id)
            tier = normalize_tier(None)
        limits = get_tier_limits(tier)
        if len(content) > limits.max_file_size_bytes:
            raise ValidationError(
                f"File exceeds the {limits.max_file_size_mb} MB limit of the {tier} plan",
                maxFileSizeMb=limits.max_file_size_mb,
                tier=tier,
            )

        file_id = uuid4()
        stored_name = original_name.replace(" ", "_")
        try:
            key = await self.storage.upload_file(
                user_id, file_id, stored_name, content, resolved_type
            )
        except Exception as e:
            logger.exception("Failed to store %s for user %s", original_name, user_id)
            raise UpstreamError("Failed to store file") from e

        file = await self.store.create_file(
            File(
                id=file_id,
                user_id=user_id,
                filename=stored_name,
                original_name=original_name,
                file_type=resolved_type,
                file_size=len(content),
                storage_key=key,
                processing_status=ProcessingStatus.PENDING.value,
            )
        )
        logger.info("Stored %s (%d bytes) as %s", original_name, len(content), key)

        if self.usage is not None:
            await self.usage.record_event(user_id, UsageField.FILES_UPLOADED, tier=tier)

        if self.enqueue is not None:
            try:
                await self.enqueue(PROCESS_FILE_TASK, str(file.id))
            except Exception:
                logger.exception("Failed to queue extraction for file %s", file.id)
                await self.store.mark_failed(file, "Could not queue file for processing")

        return file

    async def process(self, file_id: UUID) -> dict[str, Any]:
        """Download and extract one file. Used by the worker."""
        file = await self.store.get_by_id(file_id)
        if file is None:
            logger.error("File %s not found", file_id)
            return {"error": "File not found"}

        await self.store.mark_processing(file)
        try:
            content = await self.storage.download_file(file.storage_key)
            extracted = await asyncio.to_thread(
                extract_document, content, file.original_name, file.file_type
            )
        except Exception as e:
            logger.exception("Extraction failed for file %s", file_id)
            await self.store.mark_failed(file, str(e))
            return {"error": str(e)}

        await self.store.mark_completed(file, extracted.text, extracted.metadata)
        logger.info("Processed file %s: %d words", file_id, extracted.word_count)
        return {"file_id": str(file_id), "words": extracted.word_count}

    async def list_files(self, user_id: UUID) -> list[File]:
        return await self.store.list_files(user_id)

    async def get_file(self, user_id: UUID, file_id: UUID) -> File:
        file = await self.store.get_file(user_id, file_id)
        if file is None:
            raise NotFoundError("File not found or access denied")
        try:
            await self.store.touch(file)
        except Exception:
            logger.warning("Failed to update last_accessed on %s", file_id, exc_info=True)
        return file

    async def delete_file(self, user_id: UUID, file_id: UUID) -> None:
        file = await self.store.get_file(user_id, file_id)
        if file is None:
            raise NotFoundError("File not found or access denied")
        try:
            await self.storage.delete_file(file.storage_key)
        except Exception:
            logger.warning("Failed to delete object %s", file.storage_key, exc_info=True)
        await self.store.delete_file(file)
        logger.info("Deleted file %s", file_id)

    async def suggestions(
        self,
        user_id: UUID,
        file_id: UUID,
        llm: LLMProvider,
    ) -> tuple[list[str], str]:
        """Prompt suggestions for a file and the suggestion type used."""
        file = await self.store.get_file(user_id, file_id)
        if file is None:
            raise NotFoundError("File not found or access denied")
        suggestion_type = suggestion_type_for(file.file_type, file.original_name)
        suggestions = await llm.generate_suggestions(
            suggestion_type, file.original_name, file.file_metadata
        )
        return suggestions, suggestion_type
