"""Chat session endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from filementor.deps import Chat, CurrentUser
from filementor.models.chat_session import ChatSession
from filementor.schemas.chat import MessageRead, SessionCreate, SessionFilesAdd, SessionRead

router = APIRouter()


def _session_read(chat_session: ChatSession, file_ids: list[UUID]) -> SessionRead:
    return SessionRead(
        id=chat_session.id,
        session_name=chat_session.session_name,
        session_type=chat_session.session_type,
        tier_used=chat_session.tier_used,
        created_at=chat_session.created_at,
        updated_at=chat_session.updated_at,
        file_ids=file_ids,
    )


@router.get("", response_model=list[SessionRead])
async def list_sessions(user: CurrentUser, service: Chat) -> list[SessionRead]:
    """List the caller's sessions, most recently active first."""
    return [_session_read(s, ids) for s, ids in await service.list_sessions(user.id)]


@router.post("", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
async def create_session(
    data: SessionCreate,
    user: CurrentUser,
    service: Chat,
) -> SessionRead:
    chat_session, file_ids = await service.create_session(user.id, data.session_name, data.file_ids)
    return _session_read(chat_session, file_ids)


@router.get("/{session_id}/messages", response_model=list[MessageRead])
async def list_messages(
    session_id: UUID,
    user: CurrentUser,
    service: Chat,
) -> list[MessageRead]:
    """Messages of a session in the order they were sent."""
    messages = await service.list_messages(user.id, session_id)
    return [MessageRead.model_validate(m) for m in messages]


@router.post("/{session_id}/files", response_model=SessionRead)
async def attach_files(
    session_id: UUID,
    data: SessionFilesAdd,
    user: CurrentUser,
    service: Chat,
) -> SessionRead:
    chat_session, file_ids = await service.attach_files(user.id, session_id, data.file_ids)
    return _session_read(chat_session, file_ids)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: UUID,
    user: CurrentUser,
    service: Chat,
) -> None:
    await service.delete_session(user.id, session_id)
