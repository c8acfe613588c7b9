"""Billing actions — the five operations behind ``POST /api/v1/billing``.

Each action is a tagged request model plus a handler; ``dispatch_action``
picks the pair by the ``action`` field. Nothing here retries or compensates:
a failure between a Stripe call and a store write leaves the two out of sync
until the next webhook for that object arrives.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from gptbuilder.billing.pricing import CREATOR_PLAN, platform_fee_amount, to_minor_units
from gptbuilder.billing.stripe_client import (
    create_account_link,
    create_checkout_session,
    create_connect_account,
    create_customer,
    find_customer_by_email,
    get_account,
    get_subscription,
)
from gptbuilder.billing.webhooks import (
    CREATOR_SUBSCRIPTION_TYPE,
    CUSTOMER_SUBSCRIPTION_TYPE,
    get_current_period_end,
)
from gptbuilder.config import settings
from gptbuilder.errors import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    PreconditionFailedError,
)
from gptbuilder.schemas.billing import (
    CheckoutResponse,
    ConnectAccountResponse,
    ConnectStatusResponse,
    CreateConnectAccountRequest,
    CreateCreatorSubscriptionRequest,
    CreateCustomerSubscriptionRequest,
    GetConnectStatusRequest,
    SubscriptionStatusResponse,
    VerifySubscriptionRequest,
)
from gptbuilder.services.connect_account_service import (
    create_connect_account_record,
    get_connect_account_by_user,
    update_connect_account_flags,
)
from gptbuilder.services.subscription_service import (
    get_active_creator_subscription,
    get_active_customer_subscription,
    get_gpt,
)

logger = logging.getLogger(__name__)


async def create_creator_subscription(
    db: AsyncSession, request: CreateCreatorSubscriptionRequest, origin: str
) -> CheckoutResponse:
    """Start the creator plan checkout. The row is written by the webhook."""
    if await get_active_creator_subscription(db, request.user_id) is not None:
        raise ConflictError("Already has active creator subscription")

    customer = await find_customer_by_email(request.email)
    if customer is None:
        customer = await create_customer(
            email=request.email,
            metadata={"userId": request.user_id, "type": "creator"},
        )

    metadata = {"userId": request.user_id, "type": CREATOR_SUBSCRIPTION_TYPE}
    session = await create_checkout_session(
        customer_id=customer.id,
        line_item={
            "price_data": {
                "currency": CREATOR_PLAN.currency,
                "product_data": {
                    "name": CREATOR_PLAN.name,
                    "description": CREATOR_PLAN.description,
                },
                "unit_amount": CREATOR_PLAN.price_monthly_cents,
                "recurring": {"interval": "month"},
            },
            "quantity": 1,
        },
        success_url=f"{origin}?creator_subscription=success",
        cancel_url=f"{origin}?creator_subscription=cancelled",
        metadata=metadata,
        subscription_data={"metadata": metadata},
    )
    logger.info(
        "Creator checkout %s created for user %s", session.id, request.user_id
    )
    return CheckoutResponse(session_id=session.id, customer_id=customer.id, url=session.url)


async def create_connect_account_link(
    db: AsyncSession, request: CreateConnectAccountRequest, origin: str
) -> ConnectAccountResponse:
    """Create the creator's Express account on first call, then always a fresh link."""
    account = await get_connect_account_by_user(db, request.user_id)
    if account is not None:
        account_id = account.stripe_account_id
    else:
        stripe_account = await create_connect_account(request.email, request.user_id)
        account_id = stripe_account.id
        await create_connect_account_record(db, request.user_id, account_id)
        # Keep the account mapping even if the link request below fails
        await db.commit()

    link = await create_account_link(
        account_id,
        refresh_url=f"{origin}/creator-dashboard?setup=refresh",
        return_url=f"{origin}?connect=success",
    )
    return ConnectAccountResponse(account_id=account_id, onboarding_url=link.url)


async def create_customer_subscription(
    db: AsyncSession, request: CreateCustomerSubscriptionRequest, origin: str
) -> CheckoutResponse:
    """Start a customer's checkout on the creator's connected account."""
    connect_account = await get_connect_account_by_user(db, request.creator_id)
    if connect_account is None or not connect_account.onboarding_complete:
        raise PreconditionFailedError("Creator payment setup not complete")

    existing = await get_active_customer_subscription(db, request.user_id, request.gpt_id)
    if existing is not None:
        raise ConflictError("Already subscribed to this GPT")

    gpt = await get_gpt(db, request.gpt_id)
    if gpt is None:
        raise NotFoundError("GPT not found")

    monthly_price = request.monthly_price or gpt.monthly_price
    if not monthly_price or monthly_price <= 0:
        raise InvalidArgumentError("monthlyPrice is required for this GPT")

    stripe_account = connect_account.stripe_account_id
    metadata = {
        "userId": request.user_id,
        "gptId": request.gpt_id,
        "creatorId": request.creator_id,
    }
    customer = await create_customer(
        email=request.email,
        metadata=metadata,
        stripe_account=stripe_account,
    )

    unit_amount = to_minor_units(monthly_price)
    fee_amount = platform_fee_amount(monthly_price)
    product_data = {"name": f"GPT Access: {gpt.name}"}
    if gpt.description:
        product_data["description"] = gpt.description

    session_metadata = {**metadata, "type": CUSTOMER_SUBSCRIPTION_TYPE}
    session = await create_checkout_session(
        customer_id=customer.id,
        line_item={
            "price_data": {
                "currency": settings.currency,
                "product_data": product_data,
                "unit_amount": unit_amount,
                "recurring": {"interval": "month"},
            },
            "quantity": 1,
        },
        success_url=f"{origin}?subscription=success&gpt={request.gpt_id}",
        cancel_url=f"{origin}?subscription=cancelled",
        metadata=session_metadata,
        subscription_data={
            "application_fee_percent": settings.platform_fee_percent,
            "metadata": session_metadata,
        },
        stripe_account=stripe_account,
    )
    logger.info(
        "Customer checkout %s created for GPT %s: %s cents, platform fee %s cents",
        session.id,
        request.gpt_id,
        unit_amount,
        fee_amount,
    )
    return CheckoutResponse(
        session_id=session.id,
        customer_id=customer.id,
        url=session.url,
        application_fee_amount=fee_amount,
    )


async def verify_subscription(
    db: AsyncSession, request: VerifySubscriptionRequest, origin: str
) -> SubscriptionStatusResponse:
    """Read-through to Stripe; no local state is touched."""
    subscription = await get_subscription(
        request.subscription_id, stripe_account=request.stripe_account_id
    )
    return SubscriptionStatusResponse(
        status=subscription.status,
        current_period_end=get_current_period_end(subscription),
        cancel_at_period_end=bool(subscription.cancel_at_period_end),
    )


async def get_connect_status(
    db: AsyncSession, request: GetConnectStatusRequest, origin: str
) -> ConnectStatusResponse:
    """Pull the account's capabilities from Stripe and refresh the cached row."""
    account = await get_connect_account_by_user(db, request.user_id)
    if account is None:
        return ConnectStatusResponse(exists=False)

    stripe_account = await get_account(account.stripe_account_id)
    await update_connect_account_flags(
        db,
        account,
        onboarding_complete=bool(stripe_account.details_submitted),
        charges_enabled=bool(stripe_account.charges_enabled),
        payouts_enabled=bool(stripe_account.payouts_enabled),
    )
    return ConnectStatusResponse(
        exists=True,
        account_id=account.stripe_account_id,
        onboarding_complete=account.onboarding_complete,
        charges_enabled=account.charges_enabled,
        payouts_enabled=account.payouts_enabled,
    )


ActionHandler = Callable[[AsyncSession, Any, str], Awaitable[BaseModel]]

# Map action names to (request model, handler)
ACTION_HANDLERS: dict[str, tuple[type[BaseModel], ActionHandler]] = {
    "create_creator_subscription": (CreateCreatorSubscriptionRequest, create_creator_subscription),
    "create_connect_account": (CreateConnectAccountRequest, create_connect_account_link),
    "create_customer_subscription": (CreateCustomerSubscriptionRequest, create_customer_subscription),
    "verify_subscription": (VerifySubscriptionRequest, verify_subscription),
    "get_connect_status": (GetConnectStatusRequest, get_connect_status),
}


def parse_action(body: Any) -> tuple[BaseModel, ActionHandler]:
    """Validate a raw request body into its action model and handler."""
    if not isinstance(body, dict):
        raise InvalidArgumentError("Request body must be a JSON object")

    action = body.get("action")
    entry = ACTION_HANDLERS.get(action) if isinstance(action, str) else None
    if entry is None:
        raise InvalidArgumentError("Invalid action")

    request_model, handler = entry
    try:
        request = request_model.model_validate(body)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise InvalidArgumentError(f"Invalid {field}: {first['msg']}") from e
    return request, handler


async def dispatch_action(db: AsyncSession, body: Any, origin: str) -> BaseModel:
    """Run exactly one billing action for the given request body."""
    request, handler = parse_action(body)
    logger.info("Dispatching billing action %s", body["action"])
    return await handler(db, request, origin)
