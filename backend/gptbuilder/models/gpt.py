"""GPT listing model — the marketplace entry a customer subscribes to."""

import uuid
from decimal import Decimal

from sqlalchemy import Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gptbuilder.database import Base, TimestampMixin


class UserGPT(TimestampMixin, Base):
    """A creator's published GPT (read-only for the billing API)."""

    __tablename__ = "user_gpts"

    id: Mapped[str] = mapped_column(
        String(255), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    monthly_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    def __repr__(self) -> str:
        return f"<UserGPT(id={self.id}, name={self.name})>"
