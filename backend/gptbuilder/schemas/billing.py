"""Pydantic v2 request/response schemas for the billing action endpoint.

The frontend speaks camelCase (``userId``, ``sessionId``); fields are declared
in snake_case with a camelCase alias generator.
"""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Request schemas (one per action) ---


class CreateCreatorSubscriptionRequest(_CamelModel):
    """Start the $19/month creator checkout."""

    action: Literal["create_creator_subscription"]
    user_id: str = Field(..., min_length=1)
    email: EmailStr


class CreateConnectAccountRequest(_CamelModel):
    """Create (or reuse) a creator's Express account and get an onboarding link."""

    action: Literal["create_connect_account"]
    user_id: str = Field(..., min_length=1)
    email: EmailStr


class CreateCustomerSubscriptionRequest(_CamelModel):
    """Start a customer's checkout for a creator's GPT."""

    action: Literal["create_customer_subscription"]
    user_id: str = Field(..., min_length=1)
    email: EmailStr
    gpt_id: str = Field(..., min_length=1)
    creator_id: str = Field(..., min_length=1)
    monthly_price: Decimal | None = Field(default=None, gt=0)  # None = listing price


class VerifySubscriptionRequest(_CamelModel):
    """Read a subscription's live status from Stripe."""

    action: Literal["verify_subscription"]
    subscription_id: str = Field(..., min_length=1)
    stripe_account_id: str | None = None  # None = platform account


class GetConnectStatusRequest(_CamelModel):
    """Refresh and return a creator's connect account status."""

    action: Literal["get_connect_status"]
    user_id: str = Field(..., min_length=1)


# --- Response schemas ---


class CheckoutResponse(_CamelModel):
    """Stripe Checkout session returned to the frontend."""

    session_id: str
    customer_id: str
    url: str | None
    application_fee_amount: int | None = None  # minor units, customer checkouts only


class ConnectAccountResponse(_CamelModel):
    """Connected account ID plus a fresh onboarding URL."""

    account_id: str
    onboarding_url: str


class SubscriptionStatusResponse(_CamelModel):
    """Live subscription state from Stripe."""

    status: str
    current_period_end: int | None  # Unix timestamp
    cancel_at_period_end: bool


class ConnectStatusResponse(_CamelModel):
    """Connect account status; only ``exists`` is set when there is no account."""

    exists: bool
    account_id: str | None = None
    onboarding_complete: bool | None = None
    charges_enabled: bool | None = None
    payouts_enabled: bool | None = None
