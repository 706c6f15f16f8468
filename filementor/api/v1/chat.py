"""Chat endpoint."""

from fastapi import APIRouter

from filementor.deps import Chat, CurrentUser
from filementor.schemas.chat import ChatRequest, ChatResponse, MessageRead, UsageSnapshot

router = APIRouter()


@router.post("", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    user: CurrentUser,
    service: Chat,
) -> ChatResponse:
    """Send one message and get the assistant's reply.

    Responds 429 once the daily prompt limit is reached and 403 when more
    files are attached than the plan allows.
    """
    result = await service.handle_turn(user.id, request)
    return ChatResponse(
        response=result.response,
        user_message=MessageRead.model_validate(result.user_message),
        ai_message=MessageRead.model_validate(result.ai_message),
        usage=UsageSnapshot(**result.usage),
    )
