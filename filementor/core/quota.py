"""Subscription tiers and the limits attached to each of them."""

from dataclasses import dataclass, field
from enum import Enum


class SubscriptionTier(str, Enum):
    """Available subscription tiers."""

    FREE = "free"
    PRO = "pro"
    LEGEND = "legend"


DAILY_PROMPT_LIMITS: dict[str, int] = {
    SubscriptionTier.FREE.value: 10,
    SubscriptionTier.PRO.value: 25,
    SubscriptionTier.LEGEND.value: 50,
}


@dataclass(frozen=True)
class TierLimits:
    """Per-tier allowances."""

    daily_prompts: int
    max_file_size_mb: int
    max_files_per_session: int
    features: frozenset[str] = field(default_factory=frozenset)

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024


TIER_LIMITS: dict[str, TierLimits] = {
    SubscriptionTier.FREE.value: TierLimits(
        daily_prompts=DAILY_PROMPT_LIMITS["free"],
        max_file_size_mb=10,
        max_files_per_session=1,
        features=frozenset({"basic_analysis", "chat", "file_upload"}),
    ),
    SubscriptionTier.PRO.value: TierLimits(
        daily_prompts=DAILY_PROMPT_LIMITS["pro"],
        max_file_size_mb=25,
        max_files_per_session=5,
        features=frozenset(
            {"basic_analysis", "advanced_analysis", "ai_analysis", "chat", "file_upload", "multi_file"}
        ),
    ),
    SubscriptionTier.LEGEND.value: TierLimits(
        daily_prompts=DAILY_PROMPT_LIMITS["legend"],
        max_file_size_mb=50,
        max_files_per_session=10,
        features=frozenset(
            {
                "basic_analysis",
                "advanced_analysis",
                "premium_analysis",
                "ai_analysis",
                "chat",
                "file_upload",
                "multi_file",
                "export",
            }
        ),
    ),
}


def normalize_tier(tier: str | None) -> str:
    """Return a known tier name, defaulting to free."""
    if tier in DAILY_PROMPT_LIMITS:
        return tier
    return SubscriptionTier.FREE.value


def get_daily_prompt_limit(tier: str | None) -> int:
    """Daily prompt allowance for a tier. Unknown or missing tiers get the free value."""
    return DAILY_PROMPT_LIMITS.get(tier or "", DAILY_PROMPT_LIMITS[SubscriptionTier.FREE.value])


def get_tier_limits(tier: str | None) -> TierLimits:
    return TIER_LIMITS[normalize_tier(tier)]


def has_feature(tier: str | None, feature: str) -> bool:
    return feature in get_tier_limits(tier).features


def can_generate_analysis(tier: str | None) -> bool:
    """AI analysis is reserved to pro and legend."""
    return normalize_tier(tier) in (SubscriptionTier.PRO.value, SubscriptionTier.LEGEND.value)
