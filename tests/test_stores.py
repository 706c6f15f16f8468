"""Store tests against a real SQLAlchemy session (in-memory SQLite).

The in-memory fakes cannot show session state such as expired instances or
the CASE arithmetic of the user counters, so these run the real stores.
"""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.pool import StaticPool

from filementor.config import Settings
from filementor.database import Base
from filementor.models import ChatSession, User
from filementor.schemas.chat import ChatRequest, MessageRead
from filementor.schemas.file import FileRead
from filementor.services.chat import ChatService
from filementor.services.files import FileService
from filementor.services.usage import UsageTracker
from filementor.stores import BillingStore, ChatStore, FileStore, UsageStore
from tests.fakes import FakeLLM

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
SETTINGS = Settings(usage_read_retry_delay_seconds=0)


@compiles(JSONB, "sqlite")
def _jsonb_as_json(type_, compiler, **kw):
    return "JSON"


@pytest_asyncio.fixture
async def db():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_maker = async_sessionmaker(engine, expire_on_commit=False)
    async with session_maker() as session:
        yield session
    await engine.dispose()


async def _add_user(db, **counters) -> User:
    user = User(email="meera@example.com", **counters)
    db.add(user)
    await db.commit()
    return user


async def _counters(db, user: User) -> tuple[int, int, date | None]:
    await db.refresh(user)
    return user.daily_prompts_used, user.monthly_prompts_used, user.last_prompt_date


async def _drop_daily_usage(db) -> None:
    await db.execute(text("DROP TABLE daily_usage"))
    await db.commit()


class TestUserPromptCounters:
    @pytest.mark.asyncio
    async def test_same_day_accumulates(self, db):
        user = await _add_user(
            db, daily_prompts_used=3, monthly_prompts_used=10, last_prompt_date=date(2026, 10, 19)
        )

        await UsageStore(db).increment_user_prompts(user.id, date(2026, 10, 19), 1)

        assert await _counters(db, user) == (4, 11, date(2026, 10, 19))

    @pytest.mark.asyncio
    async def test_new_day_resets_daily_and_keeps_month(self, db):
        user = await _add_user(
            db, daily_prompts_used=5, monthly_prompts_used=12, last_prompt_date=date(2026, 10, 18)
        )

        await UsageStore(db).increment_user_prompts(user.id, date(2026, 10, 19), 1)

        assert await _counters(db, user) == (1, 13, date(2026, 10, 19))

    @pytest.mark.asyncio
    async def test_new_month_resets_both(self, db):
        user = await _add_user(
            db, daily_prompts_used=7, monthly_prompts_used=40, last_prompt_date=date(2026, 9, 30)
        )

        await UsageStore(db).increment_user_prompts(user.id, date(2026, 10, 1), 1)

        assert await _counters(db, user) == (1, 1, date(2026, 10, 1))

    @pytest.mark.asyncio
    async def test_first_prompt_ever(self, db):
        user = await _add_user(db)

        await UsageStore(db).increment_user_prompts(user.id, date(2026, 10, 19), 1)

        assert await _counters(db, user) == (1, 1, date(2026, 10, 19))


class TestDailyCounterReset:
    @pytest.mark.asyncio
    async def test_month_still_rolls_over_after_nightly_reset(self, db):
        user = await _add_user(
            db, daily_prompts_used=6, monthly_prompts_used=40, last_prompt_date=date(2026, 5, 31)
        )

        reset = await BillingStore(db).reset_stale_daily_counters(date(2026, 6, 1))
        assert reset == 1
        assert await _counters(db, user) == (0, 40, date(2026, 5, 31))

        await UsageStore(db).increment_user_prompts(user.id, date(2026, 6, 1), 1)

        assert await _counters(db, user) == (1, 1, date(2026, 6, 1))

    @pytest.mark.asyncio
    async def test_leaves_todays_counters_alone(self, db):
        user = await _add_user(
            db, daily_prompts_used=2, monthly_prompts_used=9, last_prompt_date=date(2026, 10, 19)
        )

        reset = await BillingStore(db).reset_stale_daily_counters(date(2026, 10, 19))

        assert reset == 0
        assert await _counters(db, user) == (2, 9, date(2026, 10, 19))


class TestFailedBookkeepingKeepsResults:
    @pytest.mark.asyncio
    async def test_chat_turn_messages_stay_loaded(self, db):
        user = await _add_user(db)
        chat_session = ChatSession(user_id=user.id, session_name="Notes")
        db.add(chat_session)
        await db.commit()
        await _drop_daily_usage(db)

        usage = UsageTracker(UsageStore(db), settings=SETTINGS, clock=lambda: NOW)
        service = ChatService(ChatStore(db), usage, FakeLLM(reply="Revenue grew."), settings=SETTINGS)

        result = await service.handle_turn(
            user.id, ChatRequest(message="What grew?", session_id=chat_session.id)
        )

        user_message = MessageRead.model_validate(result.user_message)
        ai_message = MessageRead.model_validate(result.ai_message)
        assert user_message.content == "What grew?"
        assert ai_message.content == "Revenue grew."
        assert result.usage == {"used": 1, "limit": 10, "tier": "free"}

    @pytest.mark.asyncio
    async def test_uploaded_file_stays_loaded(self, db):
        user = await _add_user(db)
        await _drop_daily_usage(db)

        storage = MagicMock()
        storage.upload_file = AsyncMock(return_value=f"{user.id}/f/report.pdf")
        usage = UsageTracker(UsageStore(db), settings=SETTINGS, clock=lambda: NOW)
        enqueue = AsyncMock()
        service = FileService(FileStore(db), storage, usage=usage, enqueue=enqueue, settings=SETTINGS)

        file = await service.upload(user.id, "report.pdf", b"%PDF-1.4", "application/pdf")

        read = FileRead.model_validate(file)
        assert read.original_name == "report.pdf"
        assert read.processing_status == "pending"
        enqueue.assert_awaited_once_with("process_file", str(file.id))
