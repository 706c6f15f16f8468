"""FastAPI dependencies."""

import logging
from typing import Annotated, Any
from uuid import UUID

from arq import create_pool
from fastapi import Depends, Header, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from filementor.config import get_settings
from filementor.core.auth import supabase_auth
from filementor.database import get_db
from filementor.errors import UnauthorizedError
from filementor.models.user import User
from filementor.services.analytics import FileAnalyticsService
from filementor.services.billing import BillingService
from filementor.services.chat import ChatService
from filementor.services.files import FileService
from filementor.services.llm.base import LLMProvider
from filementor.services.storage import storage_service
from filementor.services.usage import UsageTracker
from filementor.stores import AnalyticsStore, BillingStore, ChatStore, FileStore, UsageStore
from filementor.workers.settings import redis_settings

logger = logging.getLogger(__name__)

DEV_USER_ID = UUID("00000000-0000-0000-0000-000000000001")
DEV_USER_EMAIL = "dev@filementor.local"


async def get_or_create_dev_user(db: AsyncSession) -> User:
    """Get or create a dev user for local development."""
    result = await db.execute(select(User).where(User.id == DEV_USER_ID))
    user = result.scalar_one_or_none()
    if user:
        return user

    return await supabase_auth.get_or_create_user(
        user_id=DEV_USER_ID,
        email=DEV_USER_EMAIL,
        name="Dev User",
        db=db,
    )


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Validate the Supabase JWT and return the authenticated user.

    The user row is created on first sight with the free tier. With
    DEV_AUTH_BYPASS=true a fixed dev user is returned instead.
    """
    settings = get_settings()

    if settings.dev_auth_bypass:
        logger.info("DEV MODE: Bypassing Supabase auth, using dev user")
        return await get_or_create_dev_user(db)

    if not authorization:
        raise UnauthorizedError("Authorization header required")

    try:
        scheme, token = authorization.split(" ", 1)
        if scheme.lower() != "bearer":
            raise ValueError("Invalid scheme")
    except ValueError:
        raise UnauthorizedError("Invalid authorization header format")

    try:
        claims = supabase_auth.verify_token(token)
    except Exception as e:
        logger.warning("Token validation failed: %s", e)
        raise UnauthorizedError("Invalid or expired token")

    email = claims.get("email")
    metadata = claims.get("user_metadata") or {}
    name = metadata.get("full_name") or metadata.get("name")
    try:
        user_id = UUID(claims.get("sub") or "")
    except ValueError:
        user_id = None

    if user_id is None or not email:
        raise UnauthorizedError("Invalid token claims")

    return await supabase_auth.get_or_create_user(
        user_id=user_id,
        email=email,
        name=name,
        db=db,
    )


def get_llm(request: Request) -> LLMProvider:
    """Provider built once in the app lifespan."""
    return request.app.state.llm


async def enqueue_job(function: str, *args: Any) -> None:
    """Queue one arq job on a short-lived pool."""
    pool = await create_pool(redis_settings)
    try:
        await pool.enqueue_job(function, *args)
    finally:
        await pool.close()


def get_usage_tracker(db: Annotated[AsyncSession, Depends(get_db)]) -> UsageTracker:
    return UsageTracker(UsageStore(db))


def get_chat_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    llm: Annotated[LLMProvider, Depends(get_llm)],
) -> ChatService:
    return ChatService(ChatStore(db), UsageTracker(UsageStore(db)), llm)


def get_analytics_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    llm: Annotated[LLMProvider, Depends(get_llm)],
) -> FileAnalyticsService:
    return FileAnalyticsService(AnalyticsStore(db), UsageTracker(UsageStore(db)), llm)


def get_file_service(db: Annotated[AsyncSession, Depends(get_db)]) -> FileService:
    return FileService(
        FileStore(db),
        storage_service,
        usage=UsageTracker(UsageStore(db)),
        enqueue=enqueue_job,
    )


def get_billing_service(db: Annotated[AsyncSession, Depends(get_db)]) -> BillingService:
    return BillingService(BillingStore(db))


# Type aliases for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
Llm = Annotated[LLMProvider, Depends(get_llm)]
Usage = Annotated[UsageTracker, Depends(get_usage_tracker)]
Chat = Annotated[ChatService, Depends(get_chat_service)]
Analytics = Annotated[FileAnalyticsService, Depends(get_analytics_service)]
Files = Annotated[FileService, Depends(get_file_service)]
Billing = Annotated[BillingService, Depends(get_billing_service)]
