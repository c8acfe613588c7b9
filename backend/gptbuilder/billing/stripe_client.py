"""Async Stripe API wrapper for the GPT Builder marketplace.

Objects belonging to a creator's customers (customers, checkout sessions,
subscriptions) live on the creator's connected account; pass
``stripe_account`` to act on it.
"""

import logging
from functools import lru_cache
from typing import Any

import stripe
from stripe import StripeClient

from gptbuilder.config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_stripe_client() -> StripeClient:
    """Return the process-wide StripeClient with async HTTP support."""
    return StripeClient(
        settings.stripe_secret_key,
        http_client=stripe.HTTPXClient(),
    )


def _options(stripe_account: str | None) -> dict[str, str]:
    return {"stripe_account": stripe_account} if stripe_account else {}


async def find_customer_by_email(email: str) -> stripe.Customer | None:
    """Return the first platform customer with this email, if any."""
    client = get_stripe_client()
    customers = await client.v1.customers.list_async(
        params={"email": email, "limit": 1}
    )
    return customers.data[0] if customers.data else None


async def create_customer(
    email: str,
    metadata: dict[str, str],
    stripe_account: str | None = None,
) -> stripe.Customer:
    """Create a Stripe customer, optionally on a connected account."""
    client = get_stripe_client()
    logger.info(
        "Creating Stripe customer for %s (account=%s)",
        email,
        stripe_account or "platform",
    )
    customer = await client.v1.customers.create_async(
        params={"email": email, "metadata": metadata},
        options=_options(stripe_account),
    )
    logger.info("Created Stripe customer %s", customer.id)
    return customer


async def create_checkout_session(
    customer_id: str,
    line_item: dict[str, Any],
    success_url: str,
    cancel_url: str,
    metadata: dict[str, str],
    subscription_data: dict[str, Any] | None = None,
    stripe_account: str | None = None,
) -> stripe.checkout.Session:
    """Create a subscription-mode Checkout Session for a single line item."""
    client = get_stripe_client()
    logger.info(
        "Creating checkout session for customer %s (account=%s)",
        customer_id,
        stripe_account or "platform",
    )
    params: dict[str, Any] = {
        "mode": "subscription",
        "customer": customer_id,
        "payment_method_types": ["card"],
        "line_items": [line_item],
        "success_url": success_url,
        "cancel_url": cancel_url,
        "metadata": metadata,
    }
    if subscription_data:
        params["subscription_data"] = subscription_data
    return await client.v1.checkout.sessions.create_async(
        params=params,
        options=_options(stripe_account),
    )


async def create_connect_account(email: str, user_id: str) -> stripe.Account:
    """Create an Express connected account able to take card payments."""
    client = get_stripe_client()
    logger.info("Creating Express account for creator %s (%s)", user_id, email)
    account = await client.v1.accounts.create_async(
        params={
            "type": "express",
            "email": email,
            "metadata": {"userId": user_id},
            "capabilities": {
                "card_payments": {"requested": True},
                "transfers": {"requested": True},
            },
        }
    )
    logger.info("Created Express account %s for creator %s", account.id, user_id)
    return account


async def create_account_link(
    account_id: str, refresh_url: str, return_url: str
) -> stripe.AccountLink:
    """Create a one-time onboarding link for a connected account."""
    client = get_stripe_client()
    return await client.v1.account_links.create_async(
        params={
            "account": account_id,
            "refresh_url": refresh_url,
            "return_url": return_url,
            "type": "account_onboarding",
        }
    )


async def get_account(account_id: str) -> stripe.Account:
    """Retrieve a connected account's current capability state."""
    client = get_stripe_client()
    return await client.v1.accounts.retrieve_async(account_id)


async def get_subscription(
    subscription_id: str, stripe_account: str | None = None
) -> stripe.Subscription:
    """Retrieve a Stripe subscription by ID."""
    client = get_stripe_client()
    return await client.v1.subscriptions.retrieve_async(
        subscription_id,
        options=_options(stripe_account),
    )


def construct_webhook_event(payload: bytes, sig_header: str) -> stripe.Event:
    """Verify and construct a Stripe webhook event (synchronous)."""
    client = get_stripe_client()
    return client.construct_event(payload, sig_header, settings.stripe_webhook_secret)
