"""Usage tracking: daily counters, monthly totals and quota checks.

Writes are single atomic upserts. Reads degrade to zeroed values instead of
raising, so a usage hiccup never blocks chatting or uploading.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Awaitable, Callable, Generic, TypeVar
from uuid import UUID

from filementor.config import Settings, get_settings
from filementor.core.quota import get_daily_prompt_limit, normalize_tier
from filementor.stores.usage import UsageStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UsageField(str, Enum):
    """Counters kept per user per day."""

    PROMPTS_USED = "prompts_used"
    FILES_UPLOADED = "files_uploaded"
    ANALYSIS_GENERATED = "analysis_generated"


@dataclass
class Outcome(Generic[T]):
    """Value or error of a store call."""

    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default


@dataclass
class CurrentUsage:
    daily_prompts_used: int = 0
    daily_files_uploaded: int = 0
    daily_analysis_generated: int = 0
    monthly_prompts_used: int = 0
    monthly_files_uploaded: int = 0
    monthly_analysis_generated: int = 0


@dataclass
class DailyLimitStatus:
    has_reached_limit: bool
    remaining_prompts: int
    current_usage: int
    limit: int
    tier: str


@dataclass
class UsageStats:
    """Totals over the stats window.

    ``estimated`` is set when the totals come from raw row counts, in which
    case ``active_days`` is always 0.
    """

    total_prompts: int = 0
    total_files: int = 0
    total_analysis: int = 0
    active_days: int = 0
    estimated: bool = False


async def _with_retries(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    delay: float,
    description: str,
) -> Outcome[T]:
    """Run ``operation`` up to ``attempts`` times with a fixed delay between tries."""
    last_error: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            return Outcome(value=await operation())
        except Exception as e:
            last_error = e
            logger.warning("%s failed (attempt %d/%d): %s", description, attempt, attempts, e)
            if attempt < attempts:
                await asyncio.sleep(delay)
    logger.error("%s failed after %d attempts", description, attempts)
    return Outcome(error=last_error)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UsageTracker:
    """Records usage events and answers how much a user has used."""

    def __init__(
        self,
        store: UsageStore,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.clock = clock or utc_now

    def today(self) -> date:
        return self.clock().date()

    async def record_event(
        self,
        user_id: UUID,
        field: UsageField,
        amount: int = 1,
        tier: str | None = None,
    ) -> bool:
        """Add ``amount`` to today's counter. Never raises.

        Prompt events are mirrored into the users row counters.

        Returns:
            True if the daily counter was updated
        """
        field = UsageField(field)
        today = self.today()

        try:
            await self.store.increment_daily(user_id, today, field.value, amount, tier)
        except Exception:
            logger.exception("Failed to record %s for user %s", field.value, user_id)
            return False

        if field is UsageField.PROMPTS_USED:
            try:
                await self.store.increment_user_prompts(user_id, today, amount)
            except Exception:
                logger.exception("Failed to update prompt counters on user %s", user_id)

        return True

    async def get_current_usage(self, user_id: UUID) -> CurrentUsage:
        """Today's counters and month-to-date totals. Zeroes on failure."""
        today = self.today()

        daily = await _with_retries(
            lambda: self.store.get_daily(user_id, today),
            attempts=self.settings.usage_read_attempts,
            delay=self.settings.usage_read_retry_delay_seconds,
            description=f"Reading today's usage for {user_id}",
        )
        monthly = await _with_retries(
            lambda: self.store.list_daily_since(user_id, today.replace(day=1)),
            attempts=1,
            delay=0,
            description=f"Reading monthly usage for {user_id}",
        )

        usage = CurrentUsage()
        row = daily.unwrap_or(None)
        if row is not None:
            usage.daily_prompts_used = row.prompts_used or 0
            usage.daily_files_uploaded = row.files_uploaded or 0
            usage.daily_analysis_generated = row.analysis_generated or 0

        for day in monthly.unwrap_or([]):
            usage.monthly_prompts_used += day.prompts_used or 0
            usage.monthly_files_uploaded += day.files_uploaded or 0
            usage.monthly_analysis_generated += day.analysis_generated or 0

        return usage

    async def refresh_usage(self, user_id: UUID) -> CurrentUsage:
        """Re-read usage after a write the caller just made."""
        return await self.get_current_usage(user_id)

    async def check_daily_limit(self, user_id: UUID, tier: str | None) -> DailyLimitStatus:
        limit = get_daily_prompt_limit(tier)
        used = (await self.get_current_usage(user_id)).daily_prompts_used
        return DailyLimitStatus(
            has_reached_limit=used >= limit,
            remaining_prompts=max(0, limit - used),
            current_usage=used,
            limit=limit,
            tier=normalize_tier(tier),
        )

    async def get_usage_stats(self, user_id: UUID) -> UsageStats:
        """Totals over the last N days of daily rows.

        Without daily rows, falls back to counting files, user messages and
        analyses created in the window.
        """
        window = self.settings.usage_stats_window_days
        start = self.today() - timedelta(days=window)

        rows = await _with_retries(
            lambda: self.store.list_daily_since(user_id, start),
            attempts=1,
            delay=0,
            description=f"Reading usage stats for {user_id}",
        )
        days = rows.unwrap_or([])
        if days:
            stats = UsageStats()
            for day in days:
                stats.total_prompts += day.prompts_used or 0
                stats.total_files += day.files_uploaded or 0
                stats.total_analysis += day.analysis_generated or 0
                if (day.prompts_used or 0) > 0 or (day.files_uploaded or 0) > 0:
                    stats.active_days += 1
            return stats

        counts = await _with_retries(
            lambda: self.store.count_activity_since(user_id, self.clock() - timedelta(days=window)),
            attempts=1,
            delay=0,
            description=f"Counting raw activity for {user_id}",
        )
        prompts, files, analyses = counts.unwrap_or((0, 0, 0))
        return UsageStats(
            total_prompts=prompts,
            total_files=files,
            total_analysis=analyses,
            active_days=0,
            estimated=True,
        )
