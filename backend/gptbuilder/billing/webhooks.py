"""Stripe webhook event handlers — mirror subscription and account state into the store.

Every handler is an upsert or an unconditional overwrite, so Stripe can
redeliver the same event any number of times.
"""

import logging
from datetime import datetime, timezone

import stripe
from sqlalchemy.ext.asyncio import AsyncSession

from gptbuilder.models.subscription import (
    STATUS_ACTIVE,
    STATUS_CANCELED,
    STATUS_PAST_DUE,
    CreatorSubscription,
    CustomerSubscription,
)
from gptbuilder.services.connect_account_service import (
    get_connect_account_by_stripe_account,
    update_connect_account_flags,
)
from gptbuilder.services.subscription_service import (
    SUBSCRIPTION_MODELS,
    update_subscriptions_by_stripe_id,
    upsert_creator_subscription,
    upsert_customer_subscription,
)

logger = logging.getLogger(__name__)

CREATOR_SUBSCRIPTION_TYPE = "creator_subscription"
CUSTOMER_SUBSCRIPTION_TYPE = "customer_subscription"

_MODELS_BY_TYPE = {
    CREATOR_SUBSCRIPTION_TYPE: (CreatorSubscription,),
    CUSTOMER_SUBSCRIPTION_TYPE: (CustomerSubscription,),
}


def _ts_to_naive(ts: int | None) -> datetime | None:
    """Convert Stripe Unix timestamp to naive UTC datetime."""
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).replace(tzinfo=None)


def _get_first_item(stripe_sub: stripe.Subscription):
    """Get the first subscription item, using bracket notation to avoid
    collision with Python dict .items() in newer Stripe API versions.
    """
    try:
        sub_items = stripe_sub["items"]
    except (KeyError, AttributeError, TypeError):
        return None
    if sub_items and sub_items.data:
        return sub_items.data[0]
    return None


def _get_period_ts(stripe_sub: stripe.Subscription) -> tuple[int | None, int | None]:
    """Current period start/end as Unix timestamps.

    In Stripe API 2025-08-27 (basil), current_period_start/end moved
    from the subscription object to the subscription item.
    """
    start = getattr(stripe_sub, "current_period_start", None)
    end = getattr(stripe_sub, "current_period_end", None)
    if start is None or end is None:
        item = _get_first_item(stripe_sub)
        if item:
            start = start or getattr(item, "current_period_start", None)
            end = end or getattr(item, "current_period_end", None)
    return start, end


def get_current_period_end(stripe_sub: stripe.Subscription) -> int | None:
    """Unix timestamp at which the subscription's current period ends."""
    return _get_period_ts(stripe_sub)[1]


def _get_period(stripe_sub: stripe.Subscription) -> tuple[datetime | None, datetime | None]:
    start, end = _get_period_ts(stripe_sub)
    return _ts_to_naive(start), _ts_to_naive(end)


def _get_metadata(obj) -> dict:
    """Metadata as a plain dict. StripeObject is not a Mapping in newer SDKs."""
    metadata = getattr(obj, "metadata", None)
    if not metadata:
        return {}
    return metadata.to_dict() if hasattr(metadata, "to_dict") else dict(metadata)


def _get_invoice_subscription_id(invoice) -> str | None:
    """Subscription ID of an invoice, for both pre- and post-basil payloads."""
    subscription_id = getattr(invoice, "subscription", None)
    if subscription_id:
        return subscription_id
    parent = getattr(invoice, "parent", None)
    details = getattr(parent, "subscription_details", None) if parent else None
    return getattr(details, "subscription", None) if details else None


async def handle_checkout_session_completed(
    db: AsyncSession, event: stripe.Event
) -> None:
    """Handle checkout.session.completed — record the new subscription as active."""
    session = event.data.object
    subscription_id = session.subscription
    metadata = _get_metadata(session)
    subscription_type = metadata.get("type")

    if not subscription_id:
        logger.info("Checkout session %s has no subscription (one-time?), skipping", session.id)
        return

    if subscription_type == CREATOR_SUBSCRIPTION_TYPE:
        await upsert_creator_subscription(
            db,
            user_id=metadata.get("userId"),
            stripe_customer_id=session.customer,
            stripe_subscription_id=subscription_id,
            status=STATUS_ACTIVE,
        )
        logger.info("Creator subscription created for user %s", metadata.get("userId"))
    elif subscription_type == CUSTOMER_SUBSCRIPTION_TYPE:
        await upsert_customer_subscription(
            db,
            customer_id=metadata.get("userId"),
            gpt_id=metadata.get("gptId"),
            creator_id=metadata.get("creatorId"),
            stripe_customer_id=session.customer,
            stripe_subscription_id=subscription_id,
            status=STATUS_ACTIVE,
        )
        logger.info("Customer subscription created for GPT %s", metadata.get("gptId"))
    else:
        logger.warning(
            "Checkout session %s has unknown subscription type %r, skipping",
            session.id,
            subscription_type,
        )


async def handle_subscription_created(
    db: AsyncSession, event: stripe.Event
) -> None:
    """Handle customer.subscription.created — record status and billing period."""
    stripe_sub = event.data.object
    subscription_type = _get_metadata(stripe_sub).get("type")
    models = _MODELS_BY_TYPE.get(subscription_type, SUBSCRIPTION_MODELS)

    period_start, period_end = _get_period(stripe_sub)
    matched = await update_subscriptions_by_stripe_id(
        db,
        stripe_sub.id,
        status=stripe_sub.status,
        current_period_start=period_start,
        current_period_end=period_end,
        models=models,
    )
    logger.info(
        "Subscription created: %s (type=%s, status=%s, rows=%d)",
        stripe_sub.id,
        subscription_type,
        stripe_sub.status,
        matched,
    )


async def handle_subscription_updated(
    db: AsyncSession, event: stripe.Event
) -> None:
    """Handle customer.subscription.updated — sync status and period on both tables."""
    stripe_sub = event.data.object

    period_start, period_end = _get_period(stripe_sub)
    matched = await update_subscriptions_by_stripe_id(
        db,
        stripe_sub.id,
        status=stripe_sub.status,
        current_period_start=period_start,
        current_period_end=period_end,
    )
    if not matched:
        logger.info("Subscription not found in either table: %s", stripe_sub.id)
        return
    logger.info("Subscription updated: %s → status=%s", stripe_sub.id, stripe_sub.status)


async def handle_subscription_deleted(
    db: AsyncSession, event: stripe.Event
) -> None:
    """Handle customer.subscription.deleted — mark as canceled (rows are kept)."""
    stripe_sub = event.data.object
    matched = await update_subscriptions_by_stripe_id(
        db, stripe_sub.id, status=STATUS_CANCELED
    )
    logger.info("Subscription deleted: %s marked canceled (rows=%d)", stripe_sub.id, matched)


async def _set_invoice_subscription_status(
    db: AsyncSession, event: stripe.Event, status: str
) -> None:
    invoice = event.data.object
    subscription_id = _get_invoice_subscription_id(invoice)

    if not subscription_id:
        logger.info("Invoice %s has no subscription (one-time), skipping", invoice.id)
        return

    matched = await update_subscriptions_by_stripe_id(db, subscription_id, status=status)
    logger.info(
        "Invoice %s: subscription %s marked %s (rows=%d)",
        invoice.id,
        subscription_id,
        status,
        matched,
    )


async def handle_invoice_payment_failed(
    db: AsyncSession, event: stripe.Event
) -> None:
    """Handle invoice.payment_failed — mark subscription as past_due."""
    await _set_invoice_subscription_status(db, event, STATUS_PAST_DUE)


async def handle_invoice_payment_succeeded(
    db: AsyncSession, event: stripe.Event
) -> None:
    """Handle invoice.payment_succeeded — mark subscription as active again."""
    await _set_invoice_subscription_status(db, event, STATUS_ACTIVE)


async def handle_account_updated(db: AsyncSession, event: stripe.Event) -> None:
    """Handle account.updated — overwrite the cached connect capability flags."""
    stripe_account = event.data.object

    account = await get_connect_account_by_stripe_account(db, stripe_account.id)
    if account is None:
        logger.warning("No local connect account for Stripe account %s", stripe_account.id)
        return

    await update_connect_account_flags(
        db,
        account,
        onboarding_complete=bool(getattr(stripe_account, "details_submitted", False)),
        charges_enabled=bool(getattr(stripe_account, "charges_enabled", False)),
        payouts_enabled=bool(getattr(stripe_account, "payouts_enabled", False)),
    )
