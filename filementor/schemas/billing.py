"""Billing schemas."""

from datetime import datetime
from typing import Literal

from filementor.schemas.common import CamelModel


class PlanRead(CamelModel):
    plan: str
    amount: int  # paise
    currency: str
    daily_prompts: int
    max_file_size_mb: int
    max_files_per_session: int
    features: list[str]


class SubscriptionRead(CamelModel):
    """Current subscription state of the caller."""

    tier: str
    status: str
    subscription_ends_at: datetime | None = None
    razorpay_subscription_id: str | None = None
    daily_prompt_limit: int


class CheckoutRequest(CamelModel):
    plan: Literal["pro", "legend"]
    payment_type: Literal["order", "subscription"] = "order"


class CheckoutResponse(CamelModel):
    """Data the client passes to Razorpay Checkout."""

    key_id: str
    plan: str
    amount: int
    currency: str
    order_id: str | None = None
    subscription_id: str | None = None
    customer_id: str | None = None


class VerifyPaymentRequest(CamelModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str
    plan: Literal["pro", "legend"]


class VerifyPaymentResponse(CamelModel):
    success: bool
    tier: str
    subscription_ends_at: datetime


class CancelRequest(CamelModel):
    cancel_at_cycle_end: bool = True


class CancelResponse(CamelModel):
    message: str
    tier: str
    status: str
    subscription_ends_at: datetime | None = None
