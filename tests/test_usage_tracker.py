"""Tests for the usage tracker: atomic events, degraded reads and limits."""

from datetime import date, datetime, timezone
from uuid import uuid4

import pytest

from filementor.config import Settings
from filementor.services.usage import UsageField, UsageTracker
from tests.fakes import FakeUsageStore

NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)
TODAY = NOW.date()


def _tracker(store: FakeUsageStore) -> UsageTracker:
    settings = Settings(usage_read_retry_delay_seconds=0)
    return UsageTracker(store, settings=settings, clock=lambda: NOW)


class TestRecordEvent:
    @pytest.mark.asyncio
    async def test_creates_row_lazily_and_increments(self):
        store = FakeUsageStore()
        tracker = _tracker(store)
        user_id = uuid4()

        assert await tracker.record_event(user_id, UsageField.PROMPTS_USED, tier="pro")
        assert await tracker.record_event(user_id, UsageField.PROMPTS_USED, tier="pro")

        row = store.rows[(user_id, TODAY)]
        assert row.prompts_used == 2
        assert row.tier_at_time == "pro"
        assert store.user_prompts[user_id] == 2

    @pytest.mark.asyncio
    async def test_file_uploads_do_not_touch_user_prompt_counters(self):
        store = FakeUsageStore()
        user_id = uuid4()

        await _tracker(store).record_event(user_id, "files_uploaded", amount=3)

        assert store.rows[(user_id, TODAY)].files_uploaded == 3
        assert user_id not in store.user_prompts

    @pytest.mark.asyncio
    async def test_write_failure_returns_false(self):
        store = FakeUsageStore()
        store.fail_writes = True

        assert await _tracker(store).record_event(uuid4(), UsageField.ANALYSIS_GENERATED) is False


class TestCurrentUsage:
    @pytest.mark.asyncio
    async def test_sums_month_to_date(self):
        store = FakeUsageStore()
        user_id = uuid4()
        store.set_daily(user_id, TODAY, prompts_used=4, files_uploaded=1)
        store.set_daily(user_id, date(2026, 10, 2), prompts_used=6, analysis_generated=2)
        store.set_daily(user_id, date(2026, 9, 30), prompts_used=50)

        usage = await _tracker(store).get_current_usage(user_id)

        assert usage.daily_prompts_used == 4
        assert usage.daily_files_uploaded == 1
        assert usage.monthly_prompts_used == 10
        assert usage.monthly_analysis_generated == 2

    @pytest.mark.asyncio
    async def test_retries_transient_read_failures(self):
        store = FakeUsageStore()
        user_id = uuid4()
        store.set_daily(user_id, TODAY, prompts_used=7)
        store.read_failures = 2

        usage = await _tracker(store).get_current_usage(user_id)

        assert usage.daily_prompts_used == 7
        assert store.read_calls == 3

    @pytest.mark.asyncio
    async def test_zeroes_when_every_attempt_fails(self):
        store = FakeUsageStore()
        user_id = uuid4()
        store.set_daily(user_id, TODAY, prompts_used=7)
        store.read_failures = 10

        usage = await _tracker(store).get_current_usage(user_id)

        assert usage.daily_prompts_used == 0
        assert store.read_calls == 3

    @pytest.mark.asyncio
    async def test_refresh_sees_new_increment(self):
        store = FakeUsageStore()
        user_id = uuid4()
        tracker = _tracker(store)
        await tracker.get_current_usage(user_id)

        await tracker.record_event(user_id, UsageField.PROMPTS_USED)
        usage = await tracker.refresh_usage(user_id)

        assert usage.daily_prompts_used == 1


class TestDailyLimit:
    @pytest.mark.asyncio
    async def test_reached_at_limit(self):
        store = FakeUsageStore()
        user_id = uuid4()
        store.set_daily(user_id, TODAY, prompts_used=25)

        status = await _tracker(store).check_daily_limit(user_id, "pro")

        assert status.has_reached_limit
        assert status.remaining_prompts == 0
        assert status.limit == 25

    @pytest.mark.asyncio
    async def test_unknown_tier_uses_free_limit(self):
        store = FakeUsageStore()
        user_id = uuid4()
        store.set_daily(user_id, TODAY, prompts_used=3)

        status = await _tracker(store).check_daily_limit(user_id, "platinum")

        assert status.limit == 10
        assert status.remaining_prompts == 7
        assert status.tier == "free"
        assert not status.has_reached_limit

    @pytest.mark.asyncio
    async def test_remaining_never_negative(self):
        store = FakeUsageStore()
        user_id = uuid4()
        store.set_daily(user_id, TODAY, prompts_used=14)

        status = await _tracker(store).check_daily_limit(user_id, "free")

        assert status.remaining_prompts == 0


class TestUsageStats:
    @pytest.mark.asyncio
    async def test_counts_active_days(self):
        store = FakeUsageStore()
        user_id = uuid4()
        store.set_daily(user_id, TODAY, prompts_used=2)
        store.set_daily(user_id, date(2026, 10, 10), files_uploaded=1)
        store.set_daily(user_id, date(2026, 10, 11), analysis_generated=3)

        stats = await _tracker(store).get_usage_stats(user_id)

        assert stats.total_prompts == 2
        assert stats.total_files == 1
        assert stats.total_analysis == 3
        assert stats.active_days == 2
        assert not stats.estimated

    @pytest.mark.asyncio
    async def test_falls_back_to_raw_counts(self):
        store = FakeUsageStore()
        store.activity = (5, 2, 1)

        stats = await _tracker(store).get_usage_stats(uuid4())

        assert (stats.total_prompts, stats.total_files, stats.total_analysis) == (5, 2, 1)
        assert stats.active_days == 0
        assert stats.estimated
