"""Connect account service — store operations for creator payout accounts."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gptbuilder.models.connect_account import CreatorConnectAccount

logger = logging.getLogger(__name__)


async def get_connect_account_by_user(
    db: AsyncSession, user_id: str
) -> CreatorConnectAccount | None:
    """Look up a creator's connect account by user ID."""
    result = await db.execute(
        select(CreatorConnectAccount).where(CreatorConnectAccount.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def get_connect_account_by_stripe_account(
    db: AsyncSession, stripe_account_id: str
) -> CreatorConnectAccount | None:
    """Look up a connect account by Stripe account ID (used by webhooks)."""
    result = await db.execute(
        select(CreatorConnectAccount).where(
            CreatorConnectAccount.stripe_account_id == stripe_account_id
        )
    )
    return result.scalar_one_or_none()


async def create_connect_account_record(
    db: AsyncSession, user_id: str, stripe_account_id: str
) -> CreatorConnectAccount:
    """Persist a freshly created Stripe account with every capability off."""
    account = CreatorConnectAccount(
        user_id=user_id,
        stripe_account_id=stripe_account_id,
        onboarding_complete=False,
        charges_enabled=False,
        payouts_enabled=False,
    )
    db.add(account)
    await db.flush()
    logger.info("Linked Stripe account %s to creator %s", stripe_account_id, user_id)
    return account


async def update_connect_account_flags(
    db: AsyncSession,
    account: CreatorConnectAccount,
    onboarding_complete: bool,
    charges_enabled: bool,
    payouts_enabled: bool,
) -> CreatorConnectAccount:
    """Overwrite the cached capability flags with the gateway's values."""
    account.onboarding_complete = onboarding_complete
    account.charges_enabled = charges_enabled
    account.payouts_enabled = payouts_enabled
    await db.flush()
    logger.info(
        "Refreshed connect account %s: onboarding=%s, charges=%s, payouts=%s",
        account.stripe_account_id,
        onboarding_complete,
        charges_enabled,
        payouts_enabled,
    )
    return account
