"""create_billing_tables

Revision ID: 7c41e9b2d5a0
Revises:
Create Date: 2026-10-12 09:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '7c41e9b2d5a0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    # GPT listings are written by the builder app; billing only reads them
    op.create_table(
        "user_gpts",
        sa.Column("id", sa.String(length=255), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("monthly_price", sa.Numeric(precision=10, scale=2), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        if_not_exists=True,
    )
    op.create_index("ix_user_gpts_user_id", "user_gpts", ["user_id"], if_not_exists=True)

    op.create_table(
        "creator_subscriptions",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("stripe_customer_id", sa.String(length=255), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("current_period_start", sa.DateTime(), nullable=True),
        sa.Column("current_period_end", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("stripe_subscription_id"),
    )
    op.create_index("ix_creator_subscriptions_user_id", "creator_subscriptions", ["user_id"])

    op.create_table(
        "customer_subscriptions",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("customer_id", sa.String(length=255), nullable=False),
        sa.Column("gpt_id", sa.String(length=255), nullable=False),
        sa.Column("creator_id", sa.String(length=255), nullable=False),
        sa.Column("stripe_customer_id", sa.String(length=255), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("current_period_start", sa.DateTime(), nullable=True),
        sa.Column("current_period_end", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("stripe_subscription_id"),
    )
    op.create_index("ix_customer_subscriptions_customer_id", "customer_subscriptions", ["customer_id"])
    op.create_index("ix_customer_subscriptions_gpt_id", "customer_subscriptions", ["gpt_id"])

    op.create_table(
        "creator_connect_accounts",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("stripe_account_id", sa.String(length=255), nullable=False),
        sa.Column("onboarding_complete", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("charges_enabled", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("payouts_enabled", sa.Boolean(), server_default=sa.false(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("stripe_account_id"),
    )
    op.create_index(
        "ix_creator_connect_accounts_user_id", "creator_connect_accounts", ["user_id"], unique=True
    )


def downgrade() -> None:
    op.drop_index("ix_creator_connect_accounts_user_id", table_name="creator_connect_accounts")
    op.drop_table("creator_connect_accounts")
    op.drop_index("ix_customer_subscriptions_gpt_id", table_name="customer_subscriptions")
    op.drop_index("ix_customer_subscriptions_customer_id", table_name="customer_subscriptions")
    op.drop_table("customer_subscriptions")
    op.drop_index("ix_creator_subscriptions_user_id", table_name="creator_subscriptions")
    op.drop_table("creator_subscriptions")
    # user_gpts belongs to the builder app and is left in place
