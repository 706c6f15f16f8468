"""Billing endpoints for Razorpay plans and payments."""

from fastapi import APIRouter

from filementor.deps import Billing, CurrentUser
from filementor.schemas.billing import (
    CancelRequest,
    CancelResponse,
    CheckoutRequest,
    CheckoutResponse,
    PlanRead,
    SubscriptionRead,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)

router = APIRouter()


@router.get("/plans", response_model=list[PlanRead])
async def list_plans(service: Billing) -> list[PlanRead]:
    return [PlanRead(**plan) for plan in service.list_plans()]


@router.get("/subscription", response_model=SubscriptionRead)
async def get_subscription(user: CurrentUser, service: Billing) -> SubscriptionRead:
    """Get the caller's current plan."""
    return SubscriptionRead(**service.describe_subscription(user))


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout(
    data: CheckoutRequest,
    user: CurrentUser,
    service: Billing,
) -> CheckoutResponse:
    """Create a Razorpay order or subscription for Checkout."""
    checkout = await service.create_checkout(user, data.plan, data.payment_type)
    return CheckoutResponse(**checkout)


@router.post("/verify-payment", response_model=VerifyPaymentResponse)
async def verify_payment(
    data: VerifyPaymentRequest,
    user: CurrentUser,
    service: Billing,
) -> VerifyPaymentResponse:
    """Verify a completed Checkout payment and upgrade the caller."""
    result = await service.verify_payment(
        user,
        order_id=data.razorpay_order_id,
        payment_id=data.razorpay_payment_id,
        signature=data.razorpay_signature,
        plan=data.plan,
    )
    return VerifyPaymentResponse(**result)


@router.post("/cancel", response_model=CancelResponse)
async def cancel_subscription(
    user: CurrentUser,
    service: Billing,
    data: CancelRequest | None = None,
) -> CancelResponse:
    cancel_at_cycle_end = data.cancel_at_cycle_end if data else True
    return CancelResponse(**await service.cancel_subscription(user, cancel_at_cycle_end))
