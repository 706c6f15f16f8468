"""User model - links Supabase auth identity to subscription and usage counters."""

from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Date, DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from filementor.core.quota import SubscriptionTier
from filementor.database import Base

if TYPE_CHECKING:
    from filementor.models.chat_session import ChatSession
    from filementor.models.daily_usage import DailyUsage
    from filementor.models.file import File


class SubscriptionStatus(str, Enum):
    """Subscription status values."""

    ACTIVE = "active"
    CANCELED = "canceled"
    COMPLETED = "completed"
    PENDING = "pending"
    PAST_DUE = "past_due"


class User(Base):
    """User represents an authenticated Supabase user."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Subscription
    subscription_tier: Mapped[str] = mapped_column(
        String(20),
        default=SubscriptionTier.FREE.value,
        server_default=SubscriptionTier.FREE.value,
        nullable=False,
        index=True,
    )
    subscription_status: Mapped[str] = mapped_column(
        String(20),
        default=SubscriptionStatus.ACTIVE.value,
        server_default=SubscriptionStatus.ACTIVE.value,
        nullable=False,
    )
    subscription_ends_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Razorpay
    razorpay_customer_id: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
    )
    razorpay_subscription_id: Mapped[str | None] = mapped_column(String(255))
    razorpay_payment_id: Mapped[str | None] = mapped_column(String(255))
    razorpay_order_id: Mapped[str | None] = mapped_column(String(255))

    # Legacy running counters, mirrored from daily_usage
    daily_prompts_used: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
    )
    monthly_prompts_used: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
    )
    last_prompt_date: Mapped[date | None] = mapped_column(Date)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    daily_usages: Mapped[list["DailyUsage"]] = relationship(
        "DailyUsage",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    files: Mapped[list["File"]] = relationship(
        "File",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    chat_sessions: Mapped[list["ChatSession"]] = relationship(
        "ChatSession",
        back_populates="user",
        cascade="all, delete-orphan",
    )
