"""Stripe webhook endpoint — receives and processes Stripe events."""

import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from gptbuilder.api.deps import get_db
from gptbuilder.billing.stripe_client import construct_webhook_event
from gptbuilder.billing.webhooks import (
    handle_account_updated,
    handle_checkout_session_completed,
    handle_invoice_payment_failed,
    handle_invoice_payment_succeeded,
    handle_subscription_created,
    handle_subscription_deleted,
    handle_subscription_updated,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/webhooks", tags=["webhooks"])

# Map event types to handler functions
EVENT_HANDLERS = {
    "checkout.session.completed": handle_checkout_session_completed,
    "customer.subscription.created": handle_subscription_created,
    "customer.subscription.updated": handle_subscription_updated,
    "customer.subscription.deleted": handle_subscription_deleted,
    "invoice.payment_failed": handle_invoice_payment_failed,
    "invoice.payment_succeeded": handle_invoice_payment_succeeded,
    "account.updated": handle_account_updated,
}


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> dict[str, bool]:
    """Receive and process Stripe webhook events."""
    # 1. Read raw body (MUST be raw bytes for signature verification)
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature", "")

    # 2. Verify signature
    try:
        event = construct_webhook_event(payload, sig_header)
    except stripe.SignatureVerificationError as e:
        logger.warning("Webhook signature verification failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid signature",
        ) from e
    except ValueError as e:
        logger.warning("Invalid webhook payload")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid payload",
        ) from e

    # 3. Dispatch to handler
    handler = EVENT_HANDLERS.get(event.type)
    if handler is None:
        logger.info("Unhandled webhook event type: %s", event.type)
        return {"received": True}

    logger.info("Processing webhook event: %s (id=%s)", event.type, event.id)

    # 4. Apply; a 500 makes Stripe redeliver
    try:
        await handler(db, event)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.exception("Error processing webhook event %s", event.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook processing failed",
        ) from e

    return {"received": True}
