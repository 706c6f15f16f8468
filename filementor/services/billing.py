"""Razorpay billing service."""

import asyncio
import calendar
import logging
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable
from uuid import UUID

import razorpay
from razorpay.errors import SignatureVerificationError

from filementor.config import Settings, get_settings
from filementor.core.quota import SubscriptionTier, get_daily_prompt_limit, get_tier_limits
from filementor.errors import UpstreamError, ValidationError
from filementor.models.user import SubscriptionStatus, User
from filementor.stores.billing import BillingStore

logger = logging.getLogger(__name__)

# Amounts in paise
PLAN_AMOUNTS: dict[str, int] = {
    SubscriptionTier.PRO.value: 900,
    SubscriptionTier.LEGEND.value: 1500,
}

SUBSCRIPTION_TOTAL_COUNT = 12


def add_one_month(moment: datetime) -> datetime:
    """Same day next month, clamped to the month's last day."""
    year = moment.year + moment.month // 12
    month = moment.month % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _from_epoch(value: int | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _paise_to_rupees(amount: int | None) -> Decimal | None:
    if amount is None:
        return None
    return (Decimal(amount) / 100).quantize(Decimal("0.01"))


def build_razorpay_client(settings: Settings) -> razorpay.Client:
    return razorpay.Client(auth=(settings.razorpay_key_id, settings.razorpay_key_secret))


class BillingService:
    """Checkout, payment verification, cancellation and webhook handling."""

    def __init__(
        self,
        store: BillingStore,
        client: razorpay.Client | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.client = client or build_razorpay_client(self.settings)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def _call(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run a blocking SDK call off the event loop."""
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except razorpay.errors.BadRequestError as e:
            logger.error("Razorpay rejected request: %s", e)
            raise UpstreamError("Payment provider rejected the request") from e
        except (razorpay.errors.GatewayError, razorpay.errors.ServerError) as e:
            logger.error("Razorpay unavailable: %s", e)
            raise UpstreamError("Payment provider unavailable") from e

    def list_plans(self) -> list[dict[str, Any]]:
        plans = []
        for plan, amount in PLAN_AMOUNTS.items():
            limits = get_tier_limits(plan)
            plans.append({
                "plan": plan,
                "amount": amount,
                "currency": self.settings.razorpay_currency,
                "daily_prompts": limits.daily_prompts,
                "max_file_size_mb": limits.max_file_size_mb,
                "max_files_per_session": limits.max_files_per_session,
                "features": sorted(limits.features),
            })
        return plans

    def describe_subscription(self, user: User) -> dict[str, Any]:
        return {
            "tier": user.subscription_tier,
            "status": user.subscription_status,
            "subscription_ends_at": user.subscription_ends_at,
            "razorpay_subscription_id": user.razorpay_subscription_id,
            "daily_prompt_limit": get_daily_prompt_limit(user.subscription_tier),
        }

    def _plan_id(self, plan: str) -> str:
        plan_ids = {
            SubscriptionTier.PRO.value: self.settings.razorpay_pro_plan_id,
            SubscriptionTier.LEGEND.value: self.settings.razorpay_legend_plan_id,
        }
        plan_id = plan_ids.get(plan)
        if not plan_id:
            raise ValidationError(f"No Razorpay plan configured for {plan}")
        return plan_id

    async def create_checkout(
        self,
        user: User,
        plan: str,
        payment_type: str = "order",
    ) -> dict[str, Any]:
        """Create a one-time order or a recurring subscription for a plan.

        Args:
            user: Authenticated user
            plan: "pro" or "legend"
            payment_type: "order" or "subscription"

        Returns:
            Data the client hands to Razorpay Checkout
        """
        amount = PLAN_AMOUNTS.get(plan)
        if amount is None:
            raise ValidationError("Invalid plan")

        name = user.name or user.email.split("@")[0]
        checkout = {
            "key_id": self.settings.razorpay_key_id,
            "plan": plan,
            "amount": amount,
            "currency": self.settings.razorpay_currency,
        }

        if payment_type == "subscription":
            plan_id = self._plan_id(plan)
            customer_id = user.razorpay_customer_id
            if not customer_id:
                customer = await self._call(
                    self.client.customer.create,
                    data={
                        "name": name,
                        "email": user.email,
                        "fail_existing": "0",
                        "notes": {"user_id": str(user.id)},
                    },
                )
                customer_id = customer["id"]
                await self.store.update_user(user.id, razorpay_customer_id=customer_id)

            subscription = await self._call(
                self.client.subscription.create,
                data={
                    "plan_id": plan_id,
                    "customer_id": customer_id,
                    "customer_notify": 1,
                    "quantity": 1,
                    "total_count": SUBSCRIPTION_TOTAL_COUNT,
                    "notes": {"user_id": str(user.id), "plan": plan},
                },
            )
            logger.info("Created Razorpay subscription %s for user %s", subscription["id"], user.id)
            return {
                **checkout,
                "subscription_id": subscription["id"],
                "customer_id": customer_id,
            }

        if payment_type != "order":
            raise ValidationError("Invalid payment type")

        order = await self._call(
            self.client.order.create,
            data={
                "amount": amount,
                "currency": self.settings.razorpay_currency,
                "receipt": f"order_{str(user.id)[:8]}_{int(time.time())}",
                "notes": {
                    "user_id": str(user.id),
                    "plan": plan,
                    "email": user.email,
                    "name": name,
                },
            },
        )
        logger.info("Created Razorpay order %s for user %s", order["id"], user.id)
        return {**checkout, "order_id": order["id"]}

    async def verify_payment(
        self,
        user: User,
        order_id: str,
        payment_id: str,
        signature: str,
        plan: str,
    ) -> dict[str, Any]:
        """Verify a Checkout payment and upgrade the user for one month."""
        if plan not in PLAN_AMOUNTS:
            raise ValidationError("Invalid plan")

        try:
            self.client.utility.verify_payment_signature({
                "razorpay_order_id": order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature,
            })
        except SignatureVerificationError:
            logger.warning("Invalid payment signature for user %s", user.id)
            raise ValidationError("Invalid payment signature")

        payment = await self._call(self.client.payment.fetch, payment_id)
        if payment.get("status") != "captured":
            raise ValidationError("Payment not successful")

        now = self.clock()
        ends_at = add_one_month(now)
        await self.store.update_user(
            user.id,
            subscription_tier=plan,
            subscription_status=SubscriptionStatus.ACTIVE.value,
            razorpay_payment_id=payment_id,
            razorpay_order_id=order_id,
            subscription_ends_at=ends_at,
            daily_prompts_used=0,
        )

        amount = _paise_to_rupees(payment.get("amount")) or Decimal("0")
        currency = payment.get("currency") or self.settings.razorpay_currency
        await self.store.add_transaction(
            user_id=user.id,
            razorpay_payment_id=payment_id,
            razorpay_order_id=order_id,
            amount=amount,
            currency=currency,
            status="succeeded",
            payment_method=payment.get("method"),
            description=f"Payment for {plan} plan",
            transaction_metadata={"payment_id": payment_id, "order_id": order_id, "plan": plan},
        )
        await self.store.add_history(
            user_id=user.id,
            subscription_tier=plan,
            status=SubscriptionStatus.ACTIVE.value,
            razorpay_payment_id=payment_id,
            started_at=now,
            amount_paid=amount,
            currency=currency,
        )

        logger.info("Upgraded user %s to %s", user.id, plan)
        return {"success": True, "tier": plan, "subscription_ends_at": ends_at}

    async def cancel_subscription(
        self,
        user: User,
        cancel_at_cycle_end: bool = True,
    ) -> dict[str, Any]:
        """Cancel the user's subscription.

        Without a Razorpay subscription the user is downgraded immediately.
        Otherwise the tier is kept until the cycle ends unless
        ``cancel_at_cycle_end`` is false.
        """
        now = self.clock()

        if not user.razorpay_subscription_id:
            await self.store.update_user(
                user.id,
                subscription_tier=SubscriptionTier.FREE.value,
                subscription_status=SubscriptionStatus.CANCELED.value,
                subscription_ends_at=now,
            )
            return {
                "message": "Subscription downgraded to free",
                "tier": SubscriptionTier.FREE.value,
                "status": SubscriptionStatus.CANCELED.value,
                "subscription_ends_at": now,
            }

        canceled = await self._call(
            self.client.subscription.cancel,
            user.razorpay_subscription_id,
            data={"cancel_at_cycle_end": 1 if cancel_at_cycle_end else 0},
        )

        ends_at = (_from_epoch(canceled.get("current_end")) or now) if cancel_at_cycle_end else now
        tier = user.subscription_tier if cancel_at_cycle_end else SubscriptionTier.FREE.value
        await self.store.update_user(
            user.id,
            subscription_tier=tier,
            subscription_status=SubscriptionStatus.CANCELED.value,
            subscription_ends_at=ends_at,
        )
        await self.store.add_history(
            user_id=user.id,
            subscription_tier=SubscriptionTier.FREE.value,
            status=SubscriptionStatus.CANCELED.value,
            razorpay_subscription_id=user.razorpay_subscription_id,
            ended_at=ends_at,
        )

        return {
            "message": (
                "Subscription will be canceled at the end of the billing cycle"
                if cancel_at_cycle_end
                else "Subscription canceled immediately"
            ),
            "tier": tier,
            "status": SubscriptionStatus.CANCELED.value,
            "subscription_ends_at": ends_at,
        }

    # Webhooks

    def verify_webhook(self, body: bytes, signature: str | None) -> bool:
        if not signature or not self.settings.razorpay_webhook_secret:
            return False
        try:
            self.client.utility.verify_webhook_signature(
                body.decode("utf-8"),
                signature,
                self.settings.razorpay_webhook_secret,
            )
        except (SignatureVerificationError, UnicodeDecodeError):
            return False
        return True

    async def handle_webhook_event(self, event: dict[str, Any]) -> None:
        """Dispatch one verified webhook event. Handler errors propagate."""
        event_type = event.get("event")
        payload = event.get("payload") or {}
        payment = (payload.get("payment") or {}).get("entity")
        subscription = (payload.get("subscription") or {}).get("entity")

        match event_type:
            case "payment.captured":
                await self.handle_payment_captured(payment)
            case "payment.failed":
                await self.handle_payment_failed(payment)
            case "subscription.activated":
                await self.handle_subscription_activated(subscription)
            case "subscription.charged":
                await self.handle_subscription_charged(subscription, payment)
            case "subscription.cancelled":
                await self.handle_subscription_cancelled(subscription)
            case "subscription.completed":
                await self.handle_subscription_completed(subscription)
            case "subscription.pending":
                await self.handle_subscription_pending(subscription)
            case _:
                logger.info("Unhandled Razorpay event type: %s", event_type)
                return

        logger.info("Processed Razorpay event %s", event_type)

    @staticmethod
    def _note_user_id(entity: dict[str, Any] | None) -> UUID | None:
        notes = (entity or {}).get("notes") or {}
        raw = notes.get("user_id") if isinstance(notes, dict) else None
        if not raw:
            return None
        try:
            return UUID(str(raw))
        except ValueError:
            logger.error("Invalid user_id in Razorpay notes: %s", raw)
            return None

    @staticmethod
    def _note_plan(entity: dict[str, Any] | None) -> str | None:
        notes = (entity or {}).get("notes") or {}
        plan = notes.get("plan") if isinstance(notes, dict) else None
        return plan if plan in PLAN_AMOUNTS else None

    async def _record_transaction(self, user_id: UUID, payment: dict[str, Any], status: str) -> None:
        notes = payment.get("notes")
        plan = notes.get("plan") if isinstance(notes, dict) else None
        await self.store.add_transaction(
            user_id=user_id,
            razorpay_payment_id=payment.get("id"),
            razorpay_order_id=payment.get("order_id"),
            razorpay_subscription_id=payment.get("subscription_id"),
            amount=_paise_to_rupees(payment.get("amount")) or Decimal("0"),
            currency=payment.get("currency") or self.settings.razorpay_currency,
            status=status,
            payment_method=payment.get("method"),
            description=payment.get("description") or f"Payment for {plan or 'subscription'}",
            transaction_metadata={
                "payment_id": payment.get("id"),
                "order_id": payment.get("order_id"),
                "plan": plan,
                "error_code": payment.get("error_code"),
                "error_description": payment.get("error_description"),
            },
        )

    async def handle_payment_captured(self, payment: dict[str, Any] | None) -> None:
        user_id = self._note_user_id(payment)
        plan = self._note_plan(payment)
        if not payment or not user_id or not plan:
            logger.error("Missing user_id or plan in payment notes")
            return

        user = await self.store.get_user(user_id)
        if user is None:
            logger.error("User not found for payment: %s", user_id)
            return

        if user.subscription_tier != plan:
            now = self.clock()
            await self.store.update_user(
                user_id,
                subscription_tier=plan,
                subscription_status=SubscriptionStatus.ACTIVE.value,
                razorpay_payment_id=payment.get("id"),
                razorpay_order_id=payment.get("order_id"),
                subscription_ends_at=add_one_month(now),
                daily_prompts_used=0,
            )
            await self.store.add_history(
                user_id=user_id,
                subscription_tier=plan,
                status=SubscriptionStatus.ACTIVE.value,
                razorpay_payment_id=payment.get("id"),
                started_at=now,
                amount_paid=_paise_to_rupees(payment.get("amount")),
                currency=payment.get("currency") or self.settings.razorpay_currency,
            )

        await self._record_transaction(user_id, payment, "succeeded")

    async def handle_payment_failed(self, payment: dict[str, Any] | None) -> None:
        user_id = self._note_user_id(payment)
        if not payment or not user_id:
            return
        await self._record_transaction(user_id, payment, "failed")
        logger.info("Payment failed for user %s: %s", user_id, payment.get("error_description"))

    async def handle_subscription_activated(self, subscription: dict[str, Any] | None) -> None:
        user_id = self._note_user_id(subscription)
        plan = self._note_plan(subscription)
        if not subscription or not user_id or not plan:
            logger.error("Missing user_id or plan in subscription notes")
            return

        await self.store.update_user(
            user_id,
            subscription_tier=plan,
            subscription_status=SubscriptionStatus.ACTIVE.value,
            razorpay_subscription_id=subscription.get("id"),
            subscription_ends_at=_from_epoch(subscription.get("current_end")),
        )
        await self.store.add_history(
            user_id=user_id,
            subscription_tier=plan,
            status=SubscriptionStatus.ACTIVE.value,
            razorpay_subscription_id=subscription.get("id"),
            started_at=self.clock(),
        )

    async def handle_subscription_charged(
        self,
        subscription: dict[str, Any] | None,
        payment: dict[str, Any] | None,
    ) -> None:
        user_id = self._note_user_id(subscription)
        if not subscription or not user_id:
            return

        await self.store.update_user(
            user_id,
            subscription_status=SubscriptionStatus.ACTIVE.value,
            subscription_ends_at=_from_epoch(subscription.get("current_end")),
        )
        if payment:
            await self._record_transaction(
                user_id,
                {**payment, "subscription_id": subscription.get("id")},
                "succeeded",
            )

    async def handle_subscription_cancelled(self, subscription: dict[str, Any] | None) -> None:
        user_id = self._note_user_id(subscription)
        if not subscription or not user_id:
            return

        await self.store.update_user(
            user_id,
            subscription_tier=SubscriptionTier.FREE.value,
            subscription_status=SubscriptionStatus.CANCELED.value,
            subscription_ends_at=_from_epoch(subscription.get("end_at")) or self.clock(),
        )
        await self.store.add_history(
            user_id=user_id,
            subscription_tier=SubscriptionTier.FREE.value,
            status=SubscriptionStatus.CANCELED.value,
            razorpay_subscription_id=subscription.get("id"),
            started_at=self.clock(),
        )

    async def handle_subscription_completed(self, subscription: dict[str, Any] | None) -> None:
        user_id = self._note_user_id(subscription)
        if not subscription or not user_id:
            return

        now = self.clock()
        await self.store.update_user(
            user_id,
            subscription_tier=SubscriptionTier.FREE.value,
            subscription_status=SubscriptionStatus.COMPLETED.value,
            subscription_ends_at=now,
        )
        await self.store.add_history(
            user_id=user_id,
            subscription_tier=SubscriptionTier.FREE.value,
            status=SubscriptionStatus.COMPLETED.value,
            razorpay_subscription_id=subscription.get("id"),
            started_at=now,
        )

    async def handle_subscription_pending(self, subscription: dict[str, Any] | None) -> None:
        user_id = self._note_user_id(subscription)
        if not subscription or not user_id:
            return
        await self.store.update_user(
            user_id,
            subscription_status=SubscriptionStatus.PENDING.value,
        )

