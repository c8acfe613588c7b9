"""Subscription models — Stripe billing state for creators and their customers."""

from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from gptbuilder.database import Base, TimestampMixin, UUIDPrimaryKeyMixin

# Statuses written by this service itself. Gateway-reported statuses from
# customer.subscription.* events are stored verbatim.
STATUS_ACTIVE = "active"
STATUS_PAST_DUE = "past_due"
STATUS_CANCELED = "canceled"


class CreatorSubscription(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A creator's $19/month platform subscription."""

    __tablename__ = "creator_subscriptions"

    # Auth backend user id. Uniqueness of the active row is checked by the
    # billing actions before checkout, not enforced here.
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # Stripe identifiers
    stripe_customer_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    stripe_subscription_id: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)

    status: Mapped[str] = mapped_column(String(50), nullable=False, default=STATUS_ACTIVE)

    # Billing period
    current_period_start: Mapped[datetime | None] = mapped_column(nullable=True)
    current_period_end: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<CreatorSubscription(id={self.id}, user_id={self.user_id}, status={self.status})>"


class CustomerSubscription(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A customer's subscription to one creator's GPT listing."""

    __tablename__ = "customer_subscriptions"

    customer_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    gpt_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    creator_id: Mapped[str] = mapped_column(String(255), nullable=False)

    # Stripe identifiers (objects live on the creator's connected account)
    stripe_customer_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    stripe_subscription_id: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)

    status: Mapped[str] = mapped_column(String(50), nullable=False, default=STATUS_ACTIVE)

    current_period_start: Mapped[datetime | None] = mapped_column(nullable=True)
    current_period_end: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return (
            f"<CustomerSubscription(id={self.id}, customer_id={self.customer_id}, "
            f"gpt_id={self.gpt_id}, status={self.status})>"
        )
