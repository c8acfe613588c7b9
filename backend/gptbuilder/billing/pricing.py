"""Pricing — the creator plan and platform fee arithmetic.

Amounts arrive in decimal currency units (e.g. ``29.99``) and are sent to
Stripe in minor units (cents), rounded half-up.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from gptbuilder.config import settings

_CENT = Decimal("100")


@dataclass(frozen=True)
class CreatorPlan:
    """The fixed monthly plan creators pay to sell GPTs."""

    name: str
    description: str
    price_monthly_cents: int  # e.g. 1900 = $19.00
    currency: str


CREATOR_PLAN = CreatorPlan(
    name="Creator Subscription",
    description="Monthly subscription to monetize your GPTs on the marketplace",
    price_monthly_cents=settings.creator_subscription_price_cents,
    currency=settings.currency,
)


def _as_decimal(amount: Decimal | float | int | str) -> Decimal:
    # str() first so binary floats like 29.99 keep their written value
    return amount if isinstance(amount, Decimal) else Decimal(str(amount))


def to_minor_units(amount: Decimal | float | int | str) -> int:
    """Convert a decimal currency amount to minor units (``29.99`` -> ``2999``)."""
    cents = _as_decimal(amount) * _CENT
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def platform_fee_amount(
    amount: Decimal | float | int | str,
    fee_percent: int | None = None,
) -> int:
    """Platform's cut of a monthly price, in minor units.

    ``platform_fee_amount(29.99)`` with the default 30% fee is ``900``
    (2999 * 0.30 = 899.7, rounded half-up).
    """
    percent = settings.platform_fee_percent if fee_percent is None else fee_percent
    fee = _as_decimal(amount) * _CENT * Decimal(percent) / _CENT
    return int(fee.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
