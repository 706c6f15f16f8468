"""Razorpay webhooks endpoint."""

import json
import logging

from fastapi import APIRouter, HTTPException, Request, status

from filementor.deps import Billing

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/razorpay")
async def razorpay_webhook(request: Request, service: Billing) -> dict:
    """Handle Razorpay webhook events.

    The signature is checked over the raw body. Handler failures answer
    500 so Razorpay retries the delivery.
    """
    payload = await request.body()
    signature = request.headers.get("x-razorpay-signature")

    if not service.verify_webhook(payload, signature):
        logger.warning("Rejected Razorpay webhook with invalid signature")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid signature",
        )

    try:
        event = json.loads(payload)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid payload",
        )

    event_type = event.get("event")
    logger.info("Received Razorpay webhook: %s", event_type)

    try:
        await service.handle_webhook_event(event)
    except Exception:
        logger.exception("Error processing Razorpay webhook %s", event_type)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook processing failed",
        )

    return {"status": "ok"}
