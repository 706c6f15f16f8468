"""DailyUsage and legacy user counter persistence."""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import and_, case, extract, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert

from filementor.models.daily_usage import DailyUsage
from filementor.models.file import File
from filementor.models.file_analytics import FileAnalytics
from filementor.models.message import Message, MessageRole
from filementor.models.user import User
from filementor.stores.base import SQLStore

COUNTER_COLUMNS = ("prompts_used", "files_uploaded", "analysis_generated")


class UsageStore(SQLStore):
    """Atomic counter updates and usage reads."""

    async def increment_daily(
        self,
        user_id: UUID,
        usage_date: date,
        field: str,
        amount: int,
        tier: str | None = None,
    ) -> None:
        """Add ``amount`` to one counter of the (user, date) row in a single statement.

        The row is created on first use. Concurrent calls accumulate.
        """
        if field not in COUNTER_COLUMNS:
            raise ValueError(f"Unknown usage field: {field}")

        values = {"user_id": user_id, "usage_date": usage_date, field: amount}
        if tier:
            values["tier_at_time"] = tier

        stmt = pg_insert(DailyUsage).values(**values)
        set_ = {field: getattr(DailyUsage, field) + stmt.excluded[field]}
        if tier:
            set_["tier_at_time"] = stmt.excluded.tier_at_time
        stmt = stmt.on_conflict_do_update(
            constraint="uq_daily_usage_user_date",
            set_=set_,
        )
        await self._write(stmt)

    async def increment_user_prompts(self, user_id: UUID, today: date, amount: int) -> None:
        """Mirror a prompt increment into the users row.

        Both CASE branches read the pre-update ``last_prompt_date``, so a
        stale day resets the daily counter to ``amount`` and a stale month
        resets the monthly counter.
        """
        same_month = and_(
            User.last_prompt_date.is_not(None),
            extract("year", User.last_prompt_date) == today.year,
            extract("month", User.last_prompt_date) == today.month,
        )
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(
                daily_prompts_used=case(
                    (User.last_prompt_date == today, User.daily_prompts_used + amount),
                    else_=amount,
                ),
                monthly_prompts_used=case(
                    (same_month, User.monthly_prompts_used + amount),
                    else_=amount,
                ),
                last_prompt_date=today,
                updated_at=func.now(),
            )
        )
        await self._write(stmt)

    async def get_daily(self, user_id: UUID, usage_date: date) -> DailyUsage | None:
        result = await self.db.execute(
            select(DailyUsage)
            .where(DailyUsage.user_id == user_id)
            .where(DailyUsage.usage_date == usage_date)
        )
        return result.scalar_one_or_none()

    async def list_daily_since(self, user_id: UUID, start: date) -> list[DailyUsage]:
        """Rows on or after ``start``, newest first."""
        result = await self.db.execute(
            select(DailyUsage)
            .where(DailyUsage.user_id == user_id)
            .where(DailyUsage.usage_date >= start)
            .order_by(DailyUsage.usage_date.desc())
        )
        return list(result.scalars().all())

    async def count_activity_since(self, user_id: UUID, since: datetime) -> tuple[int, int, int]:
        """Raw (user prompts, uploaded files, analyses) counts since a timestamp."""
        prompts = select(func.count(Message.id)).where(
            Message.user_id == user_id,
            Message.role == MessageRole.USER.value,
            Message.timestamp >= since,
        )
        files = select(func.count(File.id)).where(
            File.user_id == user_id,
            File.upload_date >= since,
        )
        analyses = select(func.count(FileAnalytics.id)).where(
            FileAnalytics.user_id == user_id,
            FileAnalytics.generated_at >= since,
        )
        return (
            (await self.db.execute(prompts)).scalar_one(),
            (await self.db.execute(files)).scalar_one(),
            (await self.db.execute(analyses)).scalar_one(),
        )
