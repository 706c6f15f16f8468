"""Cached AI analysis results per file, user and analysis type."""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from filementor.database import Base


class AnalysisType(str, Enum):
    """Named analysis artifacts."""

    SUMMARY = "summary"
    INSIGHTS = "insights"
    QUESTIONS = "questions"
    ACTION_ITEMS = "action_items"


class FileAnalytics(Base):
    """FileAnalytics caches one generated analysis for a (file, user, type)."""

    __tablename__ = "file_analytics"
    __table_args__ = (
        UniqueConstraint(
            "file_id",
            "user_id",
            "analysis_type",
            name="uq_file_analytics_file_user_type",
        ),
    )

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    file_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("files.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    analysis_type: Mapped[str] = mapped_column(String(30), nullable=False)
    analysis_result: Mapped[dict] = mapped_column(JSONB, nullable=False)
    tier_used: Mapped[str] = mapped_column(String(20), default="free", server_default="free")

    # Drives the cache freshness check
    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
