"""File endpoints."""

from uuid import UUID

from fastapi import APIRouter, UploadFile, status

from filementor.deps import CurrentUser, Files, Llm
from filementor.models.file import File
from filementor.schemas.file import (
    FileDetail,
    FileRead,
    FileUploadResponse,
    SuggestionsRequest,
    SuggestionsResponse,
)

router = APIRouter()


@router.post("/upload", response_model=FileUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: UploadFile,
    user: CurrentUser,
    service: Files,
) -> FileUploadResponse:
    """Upload a document. Text extraction runs in the background worker."""
    content = await file.read()
    stored = await service.upload(user.id, file.filename, content, file.content_type)
    return FileUploadResponse(
        file=FileRead.model_validate(stored),
        message="File queued for processing",
    )


@router.get("", response_model=list[FileRead])
async def list_files(user: CurrentUser, service: Files) -> list[File]:
    return await service.list_files(user.id)


@router.post("/suggestions", response_model=SuggestionsResponse)
async def get_suggestions(
    data: SuggestionsRequest,
    user: CurrentUser,
    service: Files,
    llm: Llm,
) -> SuggestionsResponse:
    """Prompt suggestions tailored to the file type."""
    suggestions, file_type = await service.suggestions(user.id, data.file_id, llm)
    return SuggestionsResponse(suggestions=suggestions, file_type=file_type)


@router.get("/{file_id}", response_model=FileDetail)
async def get_file(file_id: UUID, user: CurrentUser, service: Files) -> File:
    return await service.get_file(user.id, file_id)


@router.delete("/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_file(file_id: UUID, user: CurrentUser, service: Files) -> None:
    """Delete a file and its stored object."""
    await service.delete_file(user.id, file_id)
