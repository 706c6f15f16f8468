"""In-memory stand-ins for the stores and the LLM provider."""

from datetime import date, datetime, timezone
from types import SimpleNamespace
from typing import Any
from uuid import UUID, uuid4

from filementor.errors import LLMProviderError
from filementor.services.llm.base import LLMProvider

COUNTERS = ("prompts_used", "files_uploaded", "analysis_generated")


class FakeUsageStore:
    def __init__(self, tier: str | None = "free") -> None:
        self.tier = tier
        self.rows: dict[tuple[UUID, date], SimpleNamespace] = {}
        self.user_prompts: dict[UUID, int] = {}
        self.activity = (0, 0, 0)
        self.read_failures = 0
        self.read_calls = 0
        self.fail_writes = False

    def set_daily(self, user_id: UUID, usage_date: date, **counters: int) -> SimpleNamespace:
        row = SimpleNamespace(
            user_id=user_id,
            usage_date=usage_date,
            prompts_used=0,
            files_uploaded=0,
            analysis_generated=0,
            tier_at_time="free",
        )
        for key, value in counters.items():
            setattr(row, key, value)
        self.rows[(user_id, usage_date)] = row
        return row

    async def get_user_tier(self, user_id: UUID) -> str | None:
        return self.tier

    async def increment_daily(
        self,
        user_id: UUID,
        usage_date: date,
        field: str,
        amount: int,
        tier: str | None = None,
    ) -> None:
        if self.fail_writes:
            raise RuntimeError("write failed")
        row = self.rows.get((user_id, usage_date)) or self.set_daily(user_id, usage_date)
        setattr(row, field, getattr(row, field) + amount)
        if tier:
            row.tier_at_time = tier

    async def increment_user_prompts(self, user_id: UUID, today: date, amount: int) -> None:
        self.user_prompts[user_id] = self.user_prompts.get(user_id, 0) + amount

    async def get_daily(self, user_id: UUID, usage_date: date) -> SimpleNamespace | None:
        self.read_calls += 1
        if self.read_failures > 0:
            self.read_failures -= 1
            raise RuntimeError("read failed")
        return self.rows.get((user_id, usage_date))

    async def list_daily_since(self, user_id: UUID, start: date) -> list[SimpleNamespace]:
        rows = [r for (uid, d), r in self.rows.items() if uid == user_id and d >= start]
        return sorted(rows, key=lambda r: r.usage_date, reverse=True)

    async def count_activity_since(self, user_id: UUID, since: datetime) -> tuple[int, int, int]:
        return self.activity


def make_file(
    user_id: UUID,
    name: str = "report.pdf",
    file_type: str = "application/pdf",
    text: str | None = "Quarterly revenue grew 12 percent.",
    metadata: dict[str, Any] | None = None,
    image_data: dict[str, Any] | None = None,
) -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid4(),
        user_id=user_id,
        filename=name,
        original_name=name,
        file_type=file_type,
        file_size=128,
        storage_key=f"{user_id}/x/{name}",
        extracted_text=text,
        file_metadata=metadata,
        image_data=image_data,
        processing_status="completed",
        error_message=None,
        upload_date=datetime(2026, 10, 1, tzinfo=timezone.utc),
        last_accessed=datetime(2026, 10, 1, tzinfo=timezone.utc),
    )


class FakeChatStore:
    def __init__(self, tier: str | None = "free") -> None:
        self.tier = tier
        self.tier_error: Exception | None = None
        self.sessions: dict[UUID, SimpleNamespace] = {}
        self.messages: list[SimpleNamespace] = []
        self.files: dict[UUID, SimpleNamespace] = {}
        self.session_files: dict[UUID, list[UUID]] = {}
        self.feature_usage: list[dict[str, Any]] = []
        self.touched_sessions: list[UUID] = []
        self.touched_files: list[UUID] = []
        self.fail_roles: set[str] = set()

    def add_session(self, user_id: UUID, file_ids: list[UUID] | None = None) -> SimpleNamespace:
        now = datetime(2026, 10, 1, tzinfo=timezone.utc)
        chat_session = SimpleNamespace(
            id=uuid4(),
            user_id=user_id,
            session_name="Chat",
            session_type="single",
            tier_used="free",
            created_at=now,
            updated_at=now,
        )
        self.sessions[chat_session.id] = chat_session
        self.session_files[chat_session.id] = list(file_ids or [])
        return chat_session

    def add_file(self, file: SimpleNamespace) -> SimpleNamespace:
        self.files[file.id] = file
        return file

    async def get_user_tier(self, user_id: UUID) -> str | None:
        if self.tier_error is not None:
            raise self.tier_error
        return self.tier

    async def get_session(self, user_id: UUID, session_id: UUID) -> SimpleNamespace | None:
        chat_session = self.sessions.get(session_id)
        if chat_session is None or chat_session.user_id != user_id:
            return None
        return chat_session

    async def add_message(
        self,
        session_id: UUID,
        user_id: UUID,
        role: str,
        content: str,
        tier: str,
        metadata: dict[str, Any] | None = None,
    ) -> SimpleNamespace:
        if role in self.fail_roles:
            raise RuntimeError(f"insert {role} failed")
        message = SimpleNamespace(
            id=uuid4(),
            chat_session_id=session_id,
            user_id=user_id,
            role=role,
            content=content,
            tier_used=tier,
            message_metadata=metadata,
            timestamp=datetime.now(timezone.utc),
        )
        self.messages.append(message)
        return message

    async def list_history(
        self,
        session_id: UUID,
        exclude_id: UUID | None = None,
    ) -> list[SimpleNamespace]:
        return [
            m for m in self.messages
            if m.chat_session_id == session_id and m.id != exclude_id
        ]

    async def load_files(self, user_id: UUID, file_ids: list[UUID]) -> list[SimpleNamespace]:
        return [
            self.files[f] for f in file_ids
            if f in self.files and self.files[f].user_id == user_id
        ]

    async def session_file_ids(self, session_id: UUID) -> list[UUID]:
        return list(self.session_files.get(session_id, []))

    async def touch_session(self, session_id: UUID) -> None:
        self.touched_sessions.append(session_id)

    async def touch_files(self, file_ids: list[UUID]) -> None:
        self.touched_files.extend(file_ids)

    async def record_feature_usage(
        self,
        user_id: UUID,
        feature_name: str,
        tier_required: str,
        usage_date: date,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self.feature_usage.append(
            {"user_id": user_id, "feature_name": feature_name, "tier_required": tier_required}
        )

    async def create_session(
        self,
        user_id: UUID,
        name: str,
        tier: str,
        file_ids: list[UUID],
    ) -> SimpleNamespace:
        chat_session = self.add_session(user_id, file_ids)
        chat_session.session_name = name
        chat_session.tier_used = tier
        chat_session.session_type = "multi" if len(file_ids) > 1 else "single"
        return chat_session

    async def list_sessions(self, user_id: UUID) -> list[SimpleNamespace]:
        owned = [s for s in self.sessions.values() if s.user_id == user_id]
        return sorted(owned, key=lambda s: s.updated_at, reverse=True)

    async def attach_files(self, chat_session: SimpleNamespace, file_ids: list[UUID]) -> None:
        current = self.session_files.setdefault(chat_session.id, [])
        current.extend(f for f in file_ids if f not in current)
        if len(current) > 1:
            chat_session.session_type = "multi"

    async def delete_session(self, chat_session: SimpleNamespace) -> None:
        self.sessions.pop(chat_session.id, None)
        self.session_files.pop(chat_session.id, None)


class FakeAnalyticsStore:
    def __init__(self, tier: str | None = "pro") -> None:
        self.tier = tier
        self.files: dict[UUID, SimpleNamespace] = {}
        self.cache: dict[tuple[UUID, UUID, str], SimpleNamespace] = {}
        self.file_reads = 0
        self.fail_save = False

    async def get_user_tier(self, user_id: UUID) -> str | None:
        return self.tier

    async def get_file(self, user_id: UUID, file_id: UUID) -> SimpleNamespace | None:
        self.file_reads += 1
        file = self.files.get(file_id)
        if file is None or file.user_id != user_id:
            return None
        return file

    async def get_cached(
        self,
        file_id: UUID,
        user_id: UUID,
        analysis_type: str,
    ) -> SimpleNamespace | None:
        return self.cache.get((file_id, user_id, analysis_type))

    async def save_analysis(
        self,
        file_id: UUID,
        user_id: UUID,
        analysis_type: str,
        result: dict[str, Any],
        tier: str,
        generated_at: datetime,
    ) -> None:
        if self.fail_save:
            raise RuntimeError("upsert failed")
        self.cache[(file_id, user_id, analysis_type)] = SimpleNamespace(
            analysis_result=result,
            tier_used=tier,
            generated_at=generated_at,
        )


class FakeLLM(LLMProvider):
    """Records calls and returns canned text."""

    def __init__(self, reply: str = "Here is what I found.", fail: bool = False) -> None:
        self.reply = reply
        self.fail = fail
        self.calls: list[dict[str, Any]] = []
        self.prompts: list[str] = []

    async def generate_response(
        self,
        history: list[dict[str, str]],
        text_context: str | None = None,
        images: list[dict[str, Any]] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        self.calls.append(
            {"history": history, "text_context": text_context, "images": images, "metadata": metadata}
        )
        if self.fail:
            raise LLMProviderError("provider down")
        return self.reply

    async def generate_analysis(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.fail:
            raise LLMProviderError("provider down")
        return self.reply

    def name(self) -> str:
        return "fake"
