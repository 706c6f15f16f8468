"""File schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from filementor.schemas.common import CamelModel


class FileRead(CamelModel):
    """Schema for reading a file."""

    id: UUID
    filename: str
    original_name: str
    file_type: str
    file_size: int
    processing_status: str
    error_message: str | None = None
    metadata: dict | None = Field(default=None, validation_alias="file_metadata")
    upload_date: datetime
    last_accessed: datetime


class FileDetail(FileRead):
    """File with its extracted text."""

    extracted_text: str | None = None


class FileUploadResponse(CamelModel):
    file: FileRead
    message: str


class SuggestionsRequest(CamelModel):
    file_id: UUID


class SuggestionsResponse(CamelModel):
    suggestions: list[str]
    file_type: str
