"""Chat session, message and attached-file persistence."""

from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert

from filementor.models.chat_session import ChatSession, session_files
from filementor.models.feature_usage import FeatureUsage
from filementor.models.file import File
from filementor.models.message import Message
from filementor.stores.base import SQLStore


class ChatStore(SQLStore):
    """Persistence used by the chat turn and session operations."""

    async def get_session(self, user_id: UUID, session_id: UUID) -> ChatSession | None:
        result = await self.db.execute(
            select(ChatSession)
            .where(ChatSession.id == session_id)
            .where(ChatSession.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def add_message(
        self,
        session_id: UUID,
        user_id: UUID,
        role: str,
        content: str,
        tier: str,
        metadata: dict[str, Any] | None = None,
    ) -> Message:
        message = Message(
            chat_session_id=session_id,
            user_id=user_id,
            role=role,
            content=content,
            tier_used=tier,
            message_metadata=metadata,
        )
        self.db.add(message)
        await self._commit()
        await self.db.refresh(message)
        return message

    async def list_history(self, session_id: UUID, exclude_id: UUID | None = None) -> list[Message]:
        """Messages of a session in timestamp order."""
        query = select(Message).where(Message.chat_session_id == session_id)
        if exclude_id is not None:
            query = query.where(Message.id != exclude_id)
        result = await self.db.execute(query.order_by(Message.timestamp.asc()))
        return list(result.scalars().all())

    async def load_files(self, user_id: UUID, file_ids: list[UUID]) -> list[File]:
        """Files among ``file_ids`` owned by the user, in the given order."""
        if not file_ids:
            return []
        result = await self.db.execute(
            select(File).where(File.id.in_(file_ids)).where(File.user_id == user_id)
        )
        by_id = {f.id: f for f in result.scalars().all()}
        return [by_id[file_id] for file_id in file_ids if file_id in by_id]

    async def session_file_ids(self, session_id: UUID) -> list[UUID]:
        result = await self.db.execute(
            select(session_files.c.file_id)
            .where(session_files.c.session_id == session_id)
            .order_by(session_files.c.added_at.asc())
        )
        return list(result.scalars().all())

    async def touch_session(self, session_id: UUID) -> None:
        await self._write(
            update(ChatSession)
            .where(ChatSession.id == session_id)
            .values(updated_at=func.now())
        )

    async def touch_files(self, file_ids: list[UUID]) -> None:
        if not file_ids:
            return
        await self._write(
            update(File).where(File.id.in_(file_ids)).values(last_accessed=func.now())
        )

    async def record_feature_usage(
        self,
        user_id: UUID,
        feature_name: str,
        tier_required: str,
        usage_date: date,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Count one use of a feature for the day."""
        stmt = pg_insert(FeatureUsage).values(
            {
                FeatureUsage.user_id: user_id,
                FeatureUsage.feature_name: feature_name,
                FeatureUsage.tier_required: tier_required,
                FeatureUsage.usage_date: usage_date,
                FeatureUsage.usage_count: 1,
                FeatureUsage.feature_metadata: metadata,
            }
        )
        stmt = stmt.on_conflict_do_update(
            constraint="uq_feature_usage_user_feature_date",
            set_={
                FeatureUsage.usage_count: FeatureUsage.usage_count + 1,
                FeatureUsage.feature_metadata: metadata,
                FeatureUsage.last_used_at: func.now(),
            },
        )
        await self._write(stmt)

    # Session management

    async def create_session(
        self,
        user_id: UUID,
        name: str,
        tier: str,
        file_ids: list[UUID],
    ) -> ChatSession:
        chat_session = ChatSession(
            user_id=user_id,
            session_name=name,
            session_type="multi" if len(file_ids) > 1 else "single",
            tier_used=tier,
        )
        self.db.add(chat_session)
        await self.db.flush()
        if file_ids:
            await self.db.execute(
                pg_insert(session_files)
                .values([{"session_id": chat_session.id, "file_id": f} for f in file_ids])
                .on_conflict_do_nothing(constraint="uq_session_files_session_file")
            )
        await self._commit()
        await self.db.refresh(chat_session)
        return chat_session

    async def list_sessions(self, user_id: UUID) -> list[ChatSession]:
        """Sessions of a user, most recently active first."""
        result = await self.db.execute(
            select(ChatSession)
            .where(ChatSession.user_id == user_id)
            .order_by(ChatSession.updated_at.desc())
        )
        return list(result.scalars().all())

    async def attach_files(self, chat_session: ChatSession, file_ids: list[UUID]) -> None:
        await self.db.execute(
            pg_insert(session_files)
            .values([{"session_id": chat_session.id, "file_id": f} for f in file_ids])
            .on_conflict_do_nothing(constraint="uq_session_files_session_file")
        )
        count = await self.db.execute(
            select(func.count()).select_from(session_files).where(
                session_files.c.session_id == chat_session.id
            )
        )
        if count.scalar_one() > 1:
            chat_session.session_type = "multi"
        await self._commit()

    async def delete_session(self, chat_session: ChatSession) -> None:
        await self.db.execute(delete(ChatSession).where(ChatSession.id == chat_session.id))
        await self._commit()
