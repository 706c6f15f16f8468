"""Usage schemas."""

from filementor.schemas.common import CamelModel


class CurrentUsageRead(CamelModel):
    """Today's and this month's counters."""

    daily_prompts_used: int
    daily_files_uploaded: int
    daily_analysis_generated: int
    monthly_prompts_used: int
    monthly_files_uploaded: int
    monthly_analysis_generated: int


class DailyLimitRead(CamelModel):
    has_reached_limit: bool
    remaining_prompts: int
    current_usage: int
    limit: int
    tier: str


class UsageStatsRead(CamelModel):
    """Totals over the stats window."""

    total_prompts: int
    total_files: int
    total_analysis: int
    active_days: int
    estimated: bool
