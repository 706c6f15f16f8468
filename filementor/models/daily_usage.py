"""DailyUsage model: one counter row per user per calendar day."""

from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Date, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from filementor.core.quota import SubscriptionTier
from filementor.database import Base

if TYPE_CHECKING:
    from filementor.models.user import User


class DailyUsage(Base):
    """DailyUsage backs daily quota enforcement and usage reporting."""

    __tablename__ = "daily_usage"
    __table_args__ = (
        UniqueConstraint("user_id", "usage_date", name="uq_daily_usage_user_date"),
    )

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    usage_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )
    prompts_used: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    files_uploaded: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    analysis_generated: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    tier_at_time: Mapped[str] = mapped_column(
        String(20),
        default=SubscriptionTier.FREE.value,
        server_default=SubscriptionTier.FREE.value,
        nullable=False,
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="daily_usages")
