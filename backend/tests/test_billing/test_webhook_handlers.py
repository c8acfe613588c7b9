"""Tests for Stripe webhook handler functions with mocked Stripe events."""

import uuid
from datetime import datetime
from types import SimpleNamespace

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gptbuilder.billing.webhooks import (
    _get_invoice_subscription_id,
    _ts_to_naive,
    get_current_period_end,
    handle_account_updated,
    handle_checkout_session_completed,
    handle_invoice_payment_failed,
    handle_invoice_payment_succeeded,
    handle_subscription_created,
    handle_subscription_deleted,
    handle_subscription_updated,
)
from gptbuilder.models.connect_account import CreatorConnectAccount
from gptbuilder.models.subscription import CreatorSubscription, CustomerSubscription


class _StripeObj(SimpleNamespace):
    """SimpleNamespace with bracket notation support (like Stripe API objects).

    Stripe API 2025-08-27 (basil) changed subscription.items to require
    bracket notation to avoid collision with Python dict .items().
    """

    def __getitem__(self, key: str):
        return getattr(self, key)


def _make_event(event_type: str, data_object: dict) -> _StripeObj:
    """Create a fake Stripe Event-like object."""
    obj = _StripeObj(**data_object)
    return _StripeObj(
        type=event_type,
        id=f"evt_test_{uuid.uuid4().hex[:8]}",
        data=_StripeObj(object=obj),
    )


async def _creator_sub(db_session: AsyncSession, sub_id: str, status: str = "active") -> CreatorSubscription:
    subscription = CreatorSubscription(
        user_id="creator-1",
        stripe_customer_id="cus_creator",
        stripe_subscription_id=sub_id,
        status=status,
    )
    db_session.add(subscription)
    await db_session.flush()
    return subscription


async def _customer_sub(db_session: AsyncSession, sub_id: str, status: str = "active") -> CustomerSubscription:
    subscription = CustomerSubscription(
        customer_id="customer-1",
        gpt_id="gpt-1",
        creator_id="creator-1",
        stripe_customer_id="cus_customer",
        stripe_subscription_id=sub_id,
        status=status,
    )
    db_session.add(subscription)
    await db_session.flush()
    return subscription


# ---------------------------------------------------------------------------
# Helper function tests
# ---------------------------------------------------------------------------


class TestHelpers:
    """Test webhook helper functions."""

    def test_ts_to_naive_with_value(self):
        """Convert Unix timestamp to naive UTC datetime."""
        result = _ts_to_naive(1700000000)
        assert result == datetime(2023, 11, 14, 22, 13, 20)
        assert result.tzinfo is None

    def test_ts_to_naive_with_none(self):
        assert _ts_to_naive(None) is None

    def test_period_end_from_subscription(self):
        sub = _StripeObj(current_period_start=1, current_period_end=2)
        assert get_current_period_end(sub) == 2

    def test_period_end_from_item(self):
        """Basil payloads carry the period on the first item."""
        sub = _StripeObj(
            items=_StripeObj(data=[_StripeObj(current_period_start=10, current_period_end=20)])
        )
        assert get_current_period_end(sub) == 20

    def test_period_end_missing(self):
        assert get_current_period_end(_StripeObj(items=_StripeObj(data=[]))) is None

    def test_invoice_subscription_legacy_field(self):
        assert _get_invoice_subscription_id(_StripeObj(subscription="sub_legacy")) == "sub_legacy"

    def test_invoice_subscription_from_parent(self):
        invoice = _StripeObj(
            subscription=None,
            parent=_StripeObj(subscription_details=_StripeObj(subscription="sub_basil")),
        )
        assert _get_invoice_subscription_id(invoice) == "sub_basil"


# ---------------------------------------------------------------------------
# checkout.session.completed
# ---------------------------------------------------------------------------


class TestHandleCheckoutSessionCompleted:
    """Test handle_checkout_session_completed."""

    @pytest.mark.asyncio
    async def test_creates_creator_subscription(self, db_session: AsyncSession):
        event = _make_event("checkout.session.completed", {
            "id": "cs_creator",
            "customer": "cus_creator",
            "subscription": "sub_creator_new",
            "metadata": {"userId": "creator-9", "type": "creator_subscription"},
        })

        await handle_checkout_session_completed(db_session, event)

        row = (await db_session.execute(select(CreatorSubscription))).scalar_one()
        assert row.user_id == "creator-9"
        assert row.stripe_customer_id == "cus_creator"
        assert row.stripe_subscription_id == "sub_creator_new"
        assert row.status == "active"

    @pytest.mark.asyncio
    async def test_creates_customer_subscription(self, db_session: AsyncSession):
        event = _make_event("checkout.session.completed", {
            "id": "cs_customer",
            "customer": "cus_on_connect",
            "subscription": "sub_customer_new",
            "metadata": {
                "userId": "customer-9",
                "gptId": "gpt-9",
                "creatorId": "creator-9",
                "type": "customer_subscription",
            },
        })

        await handle_checkout_session_completed(db_session, event)

        row = (await db_session.execute(select(CustomerSubscription))).scalar_one()
        assert row.customer_id == "customer-9"
        assert row.gpt_id == "gpt-9"
        assert row.creator_id == "creator-9"
        assert row.status == "active"
        creator_rows = (await db_session.execute(select(CreatorSubscription))).scalars().all()
        assert creator_rows == []

    @pytest.mark.asyncio
    async def test_redelivery_upserts_single_row(self, db_session: AsyncSession):
        """The same event twice leaves exactly one active row."""
        event = _make_event("checkout.session.completed", {
            "id": "cs_twice",
            "customer": "cus_twice",
            "subscription": "sub_twice",
            "metadata": {"userId": "creator-2", "type": "creator_subscription"},
        })

        await handle_checkout_session_completed(db_session, event)
        await handle_checkout_session_completed(db_session, event)

        rows = (await db_session.execute(select(CreatorSubscription))).scalars().all()
        assert len(rows) == 1
        assert rows[0].status == "active"

    @pytest.mark.asyncio
    async def test_no_subscription_in_session(self, db_session: AsyncSession):
        """Skip if checkout session has no subscription (one-time payment)."""
        event = _make_event("checkout.session.completed", {
            "id": "cs_one_time",
            "customer": "cus_test",
            "subscription": None,
            "metadata": {"userId": "creator-3", "type": "creator_subscription"},
        })
        await handle_checkout_session_completed(db_session, event)
        assert (await db_session.execute(select(CreatorSubscription))).scalars().all() == []

    @pytest.mark.asyncio
    async def test_unknown_type_is_skipped(self, db_session: AsyncSession):
        event = _make_event("checkout.session.completed", {
            "id": "cs_other",
            "customer": "cus_test",
            "subscription": "sub_other",
            "metadata": {},
        })
        await handle_checkout_session_completed(db_session, event)
        assert (await db_session.execute(select(CreatorSubscription))).scalars().all() == []
        assert (await db_session.execute(select(CustomerSubscription))).scalars().all() == []


# ---------------------------------------------------------------------------
# customer.subscription.created / updated
# ---------------------------------------------------------------------------


class TestHandleSubscriptionCreated:
    """Test handle_subscription_created."""

    @pytest.mark.asyncio
    async def test_type_tag_limits_to_one_table(self, db_session: AsyncSession):
        """A creator-tagged event leaves a same-id customer row untouched."""
        creator = await _creator_sub(db_session, "sub_shared", status="incomplete")
        customer = await _customer_sub(db_session, "sub_shared", status="incomplete")

        event = _make_event("customer.subscription.created", {
            "id": "sub_shared",
            "status": "active",
            "current_period_start": 1706745600,
            "current_period_end": 1709251200,
            "metadata": {"type": "creator_subscription"},
        })
        await handle_subscription_created(db_session, event)

        await db_session.refresh(creator)
        await db_session.refresh(customer)
        assert creator.status == "active"
        assert creator.current_period_start == datetime(2024, 2, 1)
        assert creator.current_period_end == datetime(2024, 3, 1)
        assert customer.status == "incomplete"

    @pytest.mark.asyncio
    async def test_untagged_updates_both_tables(self, db_session: AsyncSession):
        customer = await _customer_sub(db_session, "sub_untagged", status="incomplete")

        event = _make_event("customer.subscription.created", {
            "id": "sub_untagged",
            "status": "active",
            "metadata": {},
            "items": _StripeObj(
                data=[_StripeObj(current_period_start=1706745600, current_period_end=1709251200)]
            ),
        })
        await handle_subscription_created(db_session, event)

        await db_session.refresh(customer)
        assert customer.status == "active"
        assert customer.current_period_end == datetime(2024, 3, 1)


class TestHandleSubscriptionUpdated:
    """Test handle_subscription_updated."""

    @pytest.mark.asyncio
    async def test_syncs_status_and_period(self, db_session: AsyncSession):
        subscription = await _creator_sub(db_session, "sub_update")

        event = _make_event("customer.subscription.updated", {
            "id": "sub_update",
            "status": "past_due",
            "current_period_start": 1706745600,
            "current_period_end": 1709251200,
        })
        await handle_subscription_updated(db_session, event)

        await db_session.refresh(subscription)
        assert subscription.status == "past_due"
        assert subscription.current_period_start == datetime(2024, 2, 1)

    @pytest.mark.asyncio
    async def test_no_local_subscription(self, db_session: AsyncSession):
        """Neither table matching is logged, not raised."""
        event = _make_event("customer.subscription.updated", {
            "id": "sub_orphan",
            "status": "active",
            "current_period_start": 1706745600,
            "current_period_end": 1709251200,
        })
        await handle_subscription_updated(db_session, event)


# ---------------------------------------------------------------------------
# customer.subscription.deleted and invoice events
# ---------------------------------------------------------------------------


class TestHandleSubscriptionDeleted:
    """Test handle_subscription_deleted."""

    @pytest.mark.asyncio
    async def test_marks_canceled_and_keeps_row(self, db_session: AsyncSession):
        subscription = await _customer_sub(db_session, "sub_delete")
        event = _make_event("customer.subscription.deleted", {"id": "sub_delete"})

        await handle_subscription_deleted(db_session, event)

        await db_session.refresh(subscription)
        assert subscription.status == "canceled"

    @pytest.mark.asyncio
    async def test_idempotent_on_redelivery(self, db_session: AsyncSession):
        subscription = await _creator_sub(db_session, "sub_delete_twice")
        event = _make_event("customer.subscription.deleted", {"id": "sub_delete_twice"})

        await handle_subscription_deleted(db_session, event)
        await handle_subscription_deleted(db_session, event)

        await db_session.refresh(subscription)
        assert subscription.status == "canceled"


class TestInvoiceEvents:
    """Test invoice.payment_failed and invoice.payment_succeeded."""

    @pytest.mark.asyncio
    async def test_payment_failed_marks_past_due(self, db_session: AsyncSession):
        subscription = await _creator_sub(db_session, "sub_fail")
        event = _make_event("invoice.payment_failed", {"id": "in_failed", "subscription": "sub_fail"})

        await handle_invoice_payment_failed(db_session, event)

        await db_session.refresh(subscription)
        assert subscription.status == "past_due"

    @pytest.mark.asyncio
    async def test_payment_succeeded_reactivates(self, db_session: AsyncSession):
        subscription = await _customer_sub(db_session, "sub_recover", status="past_due")
        event = _make_event("invoice.payment_succeeded", {"id": "in_paid", "subscription": "sub_recover"})

        await handle_invoice_payment_succeeded(db_session, event)

        await db_session.refresh(subscription)
        assert subscription.status == "active"

    @pytest.mark.asyncio
    async def test_no_subscription_on_invoice(self, db_session: AsyncSession):
        """Skip if invoice has no subscription (one-time charge)."""
        subscription = await _creator_sub(db_session, "sub_untouched")
        event = _make_event("invoice.payment_failed", {"id": "in_one_time", "subscription": None})

        await handle_invoice_payment_failed(db_session, event)

        await db_session.refresh(subscription)
        assert subscription.status == "active"


# ---------------------------------------------------------------------------
# account.updated
# ---------------------------------------------------------------------------


class TestHandleAccountUpdated:
    """Test handle_account_updated."""

    @pytest.mark.asyncio
    async def test_overwrites_flags(self, db_session: AsyncSession):
        account = CreatorConnectAccount(user_id="creator-acct", stripe_account_id="acct_push")
        db_session.add(account)
        await db_session.flush()

        event = _make_event("account.updated", {
            "id": "acct_push",
            "details_submitted": True,
            "charges_enabled": True,
            "payouts_enabled": True,
        })
        await handle_account_updated(db_session, event)

        await db_session.refresh(account)
        assert account.onboarding_complete is True
        assert account.charges_enabled is True
        assert account.payouts_enabled is True

    @pytest.mark.asyncio
    async def test_unknown_account(self, db_session: AsyncSession):
        event = _make_event("account.updated", {
            "id": "acct_unknown",
            "details_submitted": True,
            "charges_enabled": True,
            "payouts_enabled": True,
        })
        # Should not raise
        await handle_account_updated(db_session, event)
