"""Per-day feature usage log (e.g. multi-file chat)."""

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from filementor.database import Base


class FeatureUsage(Base):
    """FeatureUsage counts paid-feature use per user per day."""

    __tablename__ = "feature_usage"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "feature_name",
            "usage_date",
            name="uq_feature_usage_user_feature_date",
        ),
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
    feature_name: Mapped[str] = mapped_column(String(50), nullable=False)
    tier_required: Mapped[str] = mapped_column(String(20), nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, default=1, server_default="1", nullable=False)
    usage_date: Mapped[date] = mapped_column(Date, nullable=False)
    feature_metadata: Mapped[dict | None] = mapped_column("metadata", JSONB)
    last_used_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
