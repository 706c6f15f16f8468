"""Usage endpoints."""

from dataclasses import asdict

from fastapi import APIRouter

from filementor.deps import CurrentUser, Usage
from filementor.schemas.usage import CurrentUsageRead, DailyLimitRead, UsageStatsRead

router = APIRouter()


@router.get("", response_model=CurrentUsageRead)
async def get_current_usage(
    user: CurrentUser,
    tracker: Usage,
    refresh: bool = False,
) -> CurrentUsageRead:
    """Today's counters and month-to-date totals."""
    if refresh:
        usage = await tracker.refresh_usage(user.id)
    else:
        usage = await tracker.get_current_usage(user.id)
    return CurrentUsageRead(**asdict(usage))


@router.get("/limit", response_model=DailyLimitRead)
async def get_daily_limit(user: CurrentUser, tracker: Usage) -> DailyLimitRead:
    status = await tracker.check_daily_limit(user.id, user.subscription_tier)
    return DailyLimitRead(**asdict(status))


@router.get("/stats", response_model=UsageStatsRead)
async def get_usage_stats(user: CurrentUser, tracker: Usage) -> UsageStatsRead:
    return UsageStatsRead(**asdict(await tracker.get_usage_stats(user.id)))
