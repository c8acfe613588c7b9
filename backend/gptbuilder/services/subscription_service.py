"""Subscription service — store operations for creator and customer subscriptions.

Duplicate prevention in the billing actions is check-then-act: the
``get_active_*`` lookups below run before a checkout session is created, with
no lock in between. Two concurrent requests can both pass the check. Stripe
remains the source of truth and the webhook upserts reconcile the rows
afterwards; a unique partial index on the active rows would make the check
strict.
"""

import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gptbuilder.models.gpt import UserGPT
from gptbuilder.models.subscription import (
    STATUS_ACTIVE,
    CreatorSubscription,
    CustomerSubscription,
)

logger = logging.getLogger(__name__)

SubscriptionModel = type[CreatorSubscription] | type[CustomerSubscription]

SUBSCRIPTION_MODELS: tuple[SubscriptionModel, ...] = (
    CreatorSubscription,
    CustomerSubscription,
)


async def get_active_creator_subscription(
    db: AsyncSession, user_id: str
) -> CreatorSubscription | None:
    """Return the creator's active platform subscription, if any."""
    result = await db.execute(
        select(CreatorSubscription)
        .where(
            CreatorSubscription.user_id == user_id,
            CreatorSubscription.status == STATUS_ACTIVE,
        )
        .limit(1)
    )
    return result.scalars().first()


async def get_active_customer_subscription(
    db: AsyncSession, customer_id: str, gpt_id: str
) -> CustomerSubscription | None:
    """Return the customer's active subscription to a GPT, if any."""
    result = await db.execute(
        select(CustomerSubscription)
        .where(
            CustomerSubscription.customer_id == customer_id,
            CustomerSubscription.gpt_id == gpt_id,
            CustomerSubscription.status == STATUS_ACTIVE,
        )
        .limit(1)
    )
    return result.scalars().first()


async def get_gpt(db: AsyncSession, gpt_id: str) -> UserGPT | None:
    """Look up a GPT listing by id."""
    return await db.get(UserGPT, gpt_id)


async def get_subscription_by_stripe_subscription(
    db: AsyncSession, model: SubscriptionModel, stripe_subscription_id: str
) -> CreatorSubscription | CustomerSubscription | None:
    """Look up a row in ``model``'s table by Stripe subscription ID."""
    result = await db.execute(
        select(model).where(model.stripe_subscription_id == stripe_subscription_id)
    )
    return result.scalar_one_or_none()


async def upsert_creator_subscription(
    db: AsyncSession,
    user_id: str,
    stripe_customer_id: str | None,
    stripe_subscription_id: str,
    status: str = STATUS_ACTIVE,
) -> CreatorSubscription:
    """Insert or refresh the creator row keyed by Stripe subscription ID."""
    subscription = await get_subscription_by_stripe_subscription(
        db, CreatorSubscription, stripe_subscription_id
    )
    if subscription is None:
        subscription = CreatorSubscription(stripe_subscription_id=stripe_subscription_id)
        db.add(subscription)

    subscription.user_id = user_id
    subscription.stripe_customer_id = stripe_customer_id
    subscription.status = status
    await db.flush()
    logger.info(
        "Upserted creator subscription %s for user %s (status=%s)",
        stripe_subscription_id,
        user_id,
        status,
    )
    return subscription


async def upsert_customer_subscription(
    db: AsyncSession,
    customer_id: str,
    gpt_id: str,
    creator_id: str,
    stripe_customer_id: str | None,
    stripe_subscription_id: str,
    status: str = STATUS_ACTIVE,
) -> CustomerSubscription:
    """Insert or refresh the customer row keyed by Stripe subscription ID."""
    subscription = await get_subscription_by_stripe_subscription(
        db, CustomerSubscription, stripe_subscription_id
    )
    if subscription is None:
        subscription = CustomerSubscription(stripe_subscription_id=stripe_subscription_id)
        db.add(subscription)

    subscription.customer_id = customer_id
    subscription.gpt_id = gpt_id
    subscription.creator_id = creator_id
    subscription.stripe_customer_id = stripe_customer_id
    subscription.status = status
    await db.flush()
    logger.info(
        "Upserted customer subscription %s for customer %s on GPT %s (status=%s)",
        stripe_subscription_id,
        customer_id,
        gpt_id,
        status,
    )
    return subscription


async def update_subscriptions_by_stripe_id(
    db: AsyncSession,
    stripe_subscription_id: str,
    status: str,
    current_period_start: datetime | None = None,
    current_period_end: datetime | None = None,
    models: tuple[SubscriptionModel, ...] = SUBSCRIPTION_MODELS,
) -> int:
    """Blindly update every matching row in the given tables.

    Period columns are only written when a value is supplied. Returns the
    total number of rows matched across tables; zero is not an error.
    """
    values: dict[str, object] = {"status": status}
    if current_period_start is not None:
        values["current_period_start"] = current_period_start
    if current_period_end is not None:
        values["current_period_end"] = current_period_end

    matched = 0
    for model in models:
        result = await db.execute(
            update(model)
            .where(model.stripe_subscription_id == stripe_subscription_id)
            .values(**values)
            .execution_options(synchronize_session="evaluate")
        )
        matched += result.rowcount or 0
    await db.flush()
    return matched
