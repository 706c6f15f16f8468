"""File row persistence for uploads and extraction."""

from typing import Any
from uuid import UUID

from sqlalchemy import func, select, update

from filementor.models.file import File, ProcessingStatus
from filementor.stores.base import SQLStore


class FileStore(SQLStore):
    """CRUD over the files table."""

    async def create_file(self, file: File) -> File:
        self.db.add(file)
        await self._commit()
        await self.db.refresh(file)
        return file

    async def list_files(self, user_id: UUID) -> list[File]:
        result = await self.db.execute(
            select(File).where(File.user_id == user_id).order_by(File.upload_date.desc())
        )
        return list(result.scalars().all())

    async def get_file(self, user_id: UUID, file_id: UUID) -> File | None:
        result = await self.db.execute(
            select(File).where(File.id == file_id).where(File.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, file_id: UUID) -> File | None:
        """Unscoped lookup for the background worker."""
        result = await self.db.execute(select(File).where(File.id == file_id))
        return result.scalar_one_or_none()

    async def touch(self, file: File) -> None:
        await self._write(
            update(File).where(File.id == file.id).values(last_accessed=func.now())
        )

    async def delete_file(self, file: File) -> None:
        await self.db.delete(file)
        await self._commit()

    async def mark_processing(self, file: File) -> None:
        file.processing_status = ProcessingStatus.PROCESSING.value
        await self._commit()

    async def mark_completed(self, file: File, text: str, metadata: dict[str, Any]) -> None:
        file.extracted_text = text
        file.file_metadata = metadata
        file.processing_status = ProcessingStatus.COMPLETED.value
        file.error_message = None
        await self._commit()

    async def mark_failed(self, file: File, error: str) -> None:
        file.processing_status = ProcessingStatus.FAILED.value
        file.error_message = error[:2000]
        await self._commit()
