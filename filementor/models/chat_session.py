"""Chat session model and its file association table."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, ForeignKey, String, Table, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from filementor.core.quota import SubscriptionTier
from filementor.database import Base

if TYPE_CHECKING:
    from filementor.models.file import File
    from filementor.models.message import Message
    from filementor.models.user import User


session_files = Table(
    "session_files",
    Base.metadata,
    Column("id", PGUUID(as_uuid=True), primary_key=True, default=uuid4),
    Column(
        "session_id",
        PGUUID(as_uuid=True),
        ForeignKey("chat_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column(
        "file_id",
        PGUUID(as_uuid=True),
        ForeignKey("files.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("added_at", DateTime(timezone=True), server_default=func.now()),
    UniqueConstraint("session_id", "file_id", name="uq_session_files_session_file"),
)


class ChatSession(Base):
    """A named conversation over one or more files."""

    __tablename__ = "chat_sessions"

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
    session_name: Mapped[str] = mapped_column(String(255), nullable=False)
    session_type: Mapped[str] = mapped_column(String(20), default="single", server_default="single")
    tier_used: Mapped[str] = mapped_column(
        String(20),
        default=SubscriptionTier.FREE.value,
        server_default=SubscriptionTier.FREE.value,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    # Bumped on every chat turn
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="chat_sessions")
    files: Mapped[list["File"]] = relationship(
        "File",
        secondary=session_files,
    )
    messages: Mapped[list["Message"]] = relationship(
        "Message",
        back_populates="chat_session",
        cascade="all, delete-orphan",
        order_by="Message.timestamp",
    )
