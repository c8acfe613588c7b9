"""Connect account model — cached mirror of a creator's Stripe Connect capabilities."""

from sqlalchemy import Boolean, String, false
from sqlalchemy.orm import Mapped, mapped_column

from gptbuilder.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class CreatorConnectAccount(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Maps a creator to their Stripe Express account.

    The capability flags are refreshed by ``get_connect_status`` (pull) and by
    the ``account.updated`` webhook (push).
    """

    __tablename__ = "creator_connect_accounts"

    user_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    stripe_account_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    onboarding_complete: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    charges_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    payouts_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    def __repr__(self) -> str:
        return (
            f"<CreatorConnectAccount(user_id={self.user_id}, "
            f"stripe_account_id={self.stripe_account_id}, "
            f"onboarding_complete={self.onboarding_complete})>"
        )
