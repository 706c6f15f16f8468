"""FileAnalytics persistence."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert

from filementor.models.file import File
from filementor.models.file_analytics import FileAnalytics
from filementor.stores.base import SQLStore


class AnalyticsStore(SQLStore):
    """Reads files and reads/writes cached analyses."""

    async def get_file(self, user_id: UUID, file_id: UUID) -> File | None:
        result = await self.db.execute(
            select(File).where(File.id == file_id).where(File.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_cached(
        self,
        file_id: UUID,
        user_id: UUID,
        analysis_type: str,
    ) -> FileAnalytics | None:
        result = await self.db.execute(
            select(FileAnalytics)
            .where(FileAnalytics.file_id == file_id)
            .where(FileAnalytics.user_id == user_id)
            .where(FileAnalytics.analysis_type == analysis_type)
        )
        return result.scalar_one_or_none()

    async def save_analysis(
        self,
        file_id: UUID,
        user_id: UUID,
        analysis_type: str,
        result: dict[str, Any],
        tier: str,
        generated_at: datetime,
    ) -> None:
        """Insert or overwrite the analysis for (file, user, type)."""
        stmt = pg_insert(FileAnalytics).values(
            file_id=file_id,
            user_id=user_id,
            analysis_type=analysis_type,
            analysis_result=result,
            tier_used=tier,
            generated_at=generated_at,
        )
        stmt = stmt.on_conflict_do_update(
            constraint="uq_file_analytics_file_user_type",
            set_={
                "analysis_result": stmt.excluded.analysis_result,
                "tier_used": stmt.excluded.tier_used,
                "generated_at": stmt.excluded.generated_at,
            },
        )
        await self._write(stmt)
