"""Tests for the chat turn: quota gate, persistence order and best-effort bookkeeping."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from filementor.config import Settings
from filementor.errors import (
    LLMProviderError,
    NotFoundError,
    QuotaExceededError,
    UpgradeRequiredError,
    UpstreamError,
)
from filementor.schemas.chat import ChatRequest
from filementor.services.chat import ChatService
from filementor.services.usage import UsageTracker
from tests.fakes import FakeChatStore, FakeLLM, FakeUsageStore, make_file

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def user_id():
    return uuid4()


def _service(tier="free", reply="Here is what I found.", fail_llm=False):
    settings = Settings(usage_read_retry_delay_seconds=0)
    chat_store = FakeChatStore(tier=tier)
    usage_store = FakeUsageStore(tier=tier)
    usage = UsageTracker(usage_store, settings=settings, clock=lambda: NOW)
    llm = FakeLLM(reply=reply, fail=fail_llm)
    return ChatService(chat_store, usage, llm, settings=settings), chat_store, usage_store, llm


class TestHandleTurn:
    @pytest.mark.asyncio
    async def test_happy_path_saves_both_messages(self, user_id):
        service, store, usage_store, llm = _service()
        file = store.add_file(make_file(user_id))
        chat_session = store.add_session(user_id)
        usage_store.set_daily(user_id, NOW.date(), prompts_used=3)

        result = await service.handle_turn(
            user_id,
            ChatRequest(message="What grew?", session_id=chat_session.id, file_id=file.id),
        )

        assert result.response == "Here is what I found."
        assert [m.role for m in store.messages] == ["user", "assistant"]
        assert result.user_message.message_metadata is None
        assert result.usage == {"used": 4, "limit": 10, "tier": "free"}
        assert usage_store.rows[(user_id, NOW.date())].prompts_used == 4
        assert store.touched_sessions == [chat_session.id]
        assert store.touched_files == [file.id]
        assert llm.calls[0]["text_context"] == "Quarterly revenue grew 12 percent."

    @pytest.mark.asyncio
    async def test_quota_exceeded_writes_nothing(self, user_id):
        service, store, usage_store, llm = _service()
        chat_session = store.add_session(user_id)
        usage_store.set_daily(user_id, NOW.date(), prompts_used=10)

        with pytest.raises(QuotaExceededError) as exc_info:
            await service.handle_turn(user_id, ChatRequest(message="hi", session_id=chat_session.id))

        assert exc_info.value.to_dict() == {
            "message": "Daily prompt limit exceeded (10/10)",
            "limit": 10,
            "used": 10,
            "tier": "free",
        }
        assert store.messages == []
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_free_tier_cannot_attach_two_files(self, user_id):
        service, store, _, llm = _service(tier="free")
        a = store.add_file(make_file(user_id, "a.pdf"))
        b = store.add_file(make_file(user_id, "b.pdf"))
        chat_session = store.add_session(user_id)

        with pytest.raises(UpgradeRequiredError) as exc_info:
            await service.handle_turn(
                user_id,
                ChatRequest(message="compare", session_id=chat_session.id, attached_files=[a.id, b.id]),
            )

        payload = exc_info.value.to_dict()
        assert payload["upgradeRequired"] is True
        assert payload["feature"] == "multi_file"
        assert payload["currentPlan"] == "free"
        assert store.messages == []
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_multi_file_turn_for_pro(self, user_id):
        service, store, _, llm = _service(tier="pro")
        a = store.add_file(make_file(user_id, "a.pdf", text="Alpha"))
        b = store.add_file(make_file(user_id, "b.pdf", text="Beta"))
        chat_session = store.add_session(user_id)

        result = await service.handle_turn(
            user_id,
            ChatRequest(message="compare", session_id=chat_session.id, attached_files=[a.id, b.id]),
        )

        assert result.user_message.message_metadata == {
            "attachedFiles": [str(a.id), str(b.id)],
            "fileCount": 2,
        }
        context = llm.calls[0]["text_context"]
        assert "=== a.pdf ===\nAlpha\n" in context
        assert "=== b.pdf ===\nBeta\n" in context
        assert llm.calls[0]["metadata"]["is_multi_file"] is True
        assert store.feature_usage[0]["feature_name"] == "multi_file_chat"
        assert store.feature_usage[0]["tier_required"] == "pro"
        assert result.usage["limit"] == 25

    @pytest.mark.asyncio
    async def test_other_users_files_are_ignored(self, user_id):
        service, store, _, llm = _service()
        foreign = store.add_file(make_file(uuid4(), "secret.pdf", text="Top secret"))
        chat_session = store.add_session(user_id)

        await service.handle_turn(
            user_id,
            ChatRequest(message="read it", session_id=chat_session.id, file_id=foreign.id),
        )

        assert llm.calls[0]["text_context"] is None

    @pytest.mark.asyncio
    async def test_falls_back_to_session_files(self, user_id):
        service, store, _, llm = _service()
        file = store.add_file(make_file(user_id, text="Linked to the session"))
        chat_session = store.add_session(user_id, [file.id])

        await service.handle_turn(user_id, ChatRequest(message="hi", session_id=chat_session.id))

        assert llm.calls[0]["text_context"] == "Linked to the session"

    @pytest.mark.asyncio
    async def test_history_is_ordered_and_ends_with_current_message(self, user_id):
        service, store, _, llm = _service()
        chat_session = store.add_session(user_id)
        await store.add_message(chat_session.id, user_id, "user", "first", "free")
        await store.add_message(chat_session.id, user_id, "assistant", "answer", "free")

        await service.handle_turn(user_id, ChatRequest(message="second", session_id=chat_session.id))

        assert llm.calls[0]["history"] == [
            {"role": "user", "content": "first"},
            {"role": "assistant", "content": "answer"},
            {"role": "user", "content": "second"},
        ]

    @pytest.mark.asyncio
    async def test_llm_failure_keeps_user_message(self, user_id):
        service, store, usage_store, _ = _service(fail_llm=True)
        chat_session = store.add_session(user_id)

        with pytest.raises(LLMProviderError):
            await service.handle_turn(user_id, ChatRequest(message="hi", session_id=chat_session.id))

        assert [m.role for m in store.messages] == ["user"]
        assert usage_store.rows == {}

    @pytest.mark.asyncio
    async def test_user_message_save_failure(self, user_id):
        service, store, _, llm = _service()
        store.fail_roles = {"user"}
        chat_session = store.add_session(user_id)

        with pytest.raises(UpstreamError, match="Failed to save user message"):
            await service.handle_turn(user_id, ChatRequest(message="hi", session_id=chat_session.id))

        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_ai_message_save_failure(self, user_id):
        service, store, _, _ = _service()
        store.fail_roles = {"assistant"}
        chat_session = store.add_session(user_id)

        with pytest.raises(UpstreamError, match="Failed to save AI response"):
            await service.handle_turn(user_id, ChatRequest(message="hi", session_id=chat_session.id))

    @pytest.mark.asyncio
    async def test_usage_write_failure_does_not_fail_turn(self, user_id):
        service, store, usage_store, _ = _service()
        usage_store.fail_writes = True
        chat_session = store.add_session(user_id)

        result = await service.handle_turn(user_id, ChatRequest(message="hi", session_id=chat_session.id))

        assert result.usage["used"] == 1
        assert len(store.messages) == 2

    @pytest.mark.asyncio
    async def test_tier_lookup_failure_defaults_to_free(self, user_id):
        service, store, _, _ = _service(tier="legend")
        store.tier_error = RuntimeError("db down")
        chat_session = store.add_session(user_id)

        result = await service.handle_turn(user_id, ChatRequest(message="hi", session_id=chat_session.id))

        assert result.usage["tier"] == "free"
        assert result.usage["limit"] == 10

    @pytest.mark.asyncio
    async def test_unknown_session(self, user_id):
        service, store, _, _ = _service()
        other = store.add_session(uuid4())

        with pytest.raises(NotFoundError):
            await service.handle_turn(user_id, ChatRequest(message="hi", session_id=other.id))


class TestSessions:
    @pytest.mark.asyncio
    async def test_create_with_files(self, user_id):
        service, store, _, _ = _service(tier="pro")
        a = store.add_file(make_file(user_id, "a.pdf"))
        b = store.add_file(make_file(user_id, "b.pdf"))

        chat_session, file_ids = await service.create_session(user_id, "Compare", [a.id, b.id])

        assert chat_session.session_type == "multi"
        assert file_ids == [a.id, b.id]

    @pytest.mark.asyncio
    async def test_create_rejects_foreign_file(self, user_id):
        service, store, _, _ = _service()
        foreign = store.add_file(make_file(uuid4()))

        with pytest.raises(NotFoundError):
            await service.create_session(user_id, "Mine", [foreign.id])

    @pytest.mark.asyncio
    async def test_attach_respects_tier_limit(self, user_id):
        service, store, _, _ = _service(tier="free")
        a = store.add_file(make_file(user_id, "a.pdf"))
        b = store.add_file(make_file(user_id, "b.pdf"))
        chat_session = store.add_session(user_id, [a.id])

        with pytest.raises(UpgradeRequiredError):
            await service.attach_files(user_id, chat_session.id, [b.id])

    @pytest.mark.asyncio
    async def test_delete_is_owner_scoped(self, user_id):
        service, store, _, _ = _service()
        chat_session = store.add_session(uuid4())

        with pytest.raises(NotFoundError):
            await service.delete_session(user_id, chat_session.id)
        assert chat_session.id in store.sessions
