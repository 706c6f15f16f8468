"""User subscription state and billing history persistence."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func, select, update

from filementor.core.quota import SubscriptionTier
from filementor.models.billing import PaymentTransaction, SubscriptionHistory
from filementor.models.user import SubscriptionStatus, User
from filementor.stores.base import SQLStore


class BillingStore(SQLStore):
    """Reads and mutates the subscription columns of users."""

    async def get_user(self, user_id: UUID) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def update_user(self, user_id: UUID, **values: Any) -> None:
        await self._write(
            update(User).where(User.id == user_id).values(updated_at=func.now(), **values)
        )

    async def add_transaction(self, **values: Any) -> None:
        self.db.add(PaymentTransaction(**values))
        await self._commit()

    async def add_history(self, **values: Any) -> None:
        self.db.add(SubscriptionHistory(**values))
        await self._commit()

    async def reset_stale_daily_counters(self, today: date) -> int:
        """Zero daily_prompts_used for users whose last prompt is before today.

        last_prompt_date is left alone: the next prompt compares it with the
        current month to roll monthly_prompts_used over.
        """
        result = await self.db.execute(
            update(User)
            .where(User.last_prompt_date < today)
            .where(User.daily_prompts_used != 0)
            .values(daily_prompts_used=0)
        )
        await self._commit()
        return result.rowcount

    async def downgrade_expired(self, now: datetime) -> int:
        """Move canceled subscriptions whose period ended back to free."""
        result = await self.db.execute(
            update(User)
            .where(User.subscription_status == SubscriptionStatus.CANCELED.value)
            .where(User.subscription_tier != SubscriptionTier.FREE.value)
            .where(User.subscription_ends_at <= now)
            .values(subscription_tier=SubscriptionTier.FREE.value, updated_at=func.now())
        )
        await self._commit()
        return result.rowcount
