"""Chat and session schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from filementor.schemas.common import CamelModel


class ChatRequest(CamelModel):
    """One chat turn."""

    message: str = Field(min_length=1)
    session_id: UUID
    file_id: UUID | None = None
    attached_files: list[UUID] = []

    @property
    def requested_file_ids(self) -> list[UUID]:
        """Attached files win over the single file id."""
        if self.attached_files:
            return list(dict.fromkeys(self.attached_files))
        return [self.file_id] if self.file_id else []


class MessageRead(CamelModel):
    """Persisted chat message."""

    id: UUID
    chat_session_id: UUID
    role: str
    content: str
    tier_used: str
    metadata: dict | None = Field(default=None, validation_alias="message_metadata")
    timestamp: datetime


class UsageSnapshot(CamelModel):
    used: int
    limit: int
    tier: str


class ChatResponse(CamelModel):
    """Chat response: both saved messages and post-increment usage."""

    response: str
    user_message: MessageRead
    ai_message: MessageRead
    usage: UsageSnapshot


class SessionCreate(CamelModel):
    session_name: str = Field(default="New chat", min_length=1, max_length=255)
    file_ids: list[UUID] = []


class SessionFilesAdd(CamelModel):
    file_ids: list[UUID] = Field(min_length=1)


class SessionRead(CamelModel):
    id: UUID
    session_name: str
    session_type: str
    tier_used: str
    created_at: datetime
    updated_at: datetime
    file_ids: list[UUID] = []
