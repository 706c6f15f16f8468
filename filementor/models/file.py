"""File model."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from filementor.database import Base

if TYPE_CHECKING:
    from filementor.models.user import User


class ProcessingStatus(str, Enum):
    """Text extraction status."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class File(Base):
    """File represents an uploaded document and its extracted text."""

    __tablename__ = "files"

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

    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_type: Mapped[str] = mapped_column(String(150), nullable=False, index=True)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    storage_key: Mapped[str] = mapped_column(String(1000), nullable=False)

    extracted_text: Mapped[str | None] = mapped_column(Text)
    # {"type": "spreadsheet", "sheetCount": 2, ...}
    file_metadata: Mapped[dict | None] = mapped_column("metadata", JSONB)
    # {"data": "<base64>", "mimeType": "image/png"}
    image_data: Mapped[dict | None] = mapped_column(JSONB)

    processing_status: Mapped[str] = mapped_column(
        String(20),
        default=ProcessingStatus.PENDING.value,
        server_default=ProcessingStatus.PENDING.value,
        index=True,
    )
    error_message: Mapped[str | None] = mapped_column(String(2000))

    upload_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    last_accessed: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="files")
