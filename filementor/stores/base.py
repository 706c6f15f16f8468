"""Common store plumbing."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Executable

from filementor.models.user import User


class SQLStore:
    """Base class for stores wrapping one AsyncSession.

    All stores of a request share the session. A failed statement rolls
    back only its own savepoint, so instances returned earlier stay loaded.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _write(self, stmt: Executable) -> None:
        """Execute one statement in a SAVEPOINT and commit.

        On failure only the savepoint is rolled back.
        """
        async with self.db.begin_nested():
            await self.db.execute(stmt)
        await self._commit()

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def get_user_tier(self, user_id: UUID) -> str | None:
        result = await self.db.execute(
            select(User.subscription_tier).where(User.id == user_id)
        )
        return result.scalar_one_or_none()
