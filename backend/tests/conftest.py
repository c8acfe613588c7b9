"""Shared test configuration and fixtures.

Each test gets a fresh in-memory SQLite database built from ``Base.metadata``
so no PostgreSQL instance is needed. Stripe and the completion API are never
called: tests patch the wrapper functions in ``gptbuilder.billing`` and
``gptbuilder.llm``.
"""

import os

# Must be set before gptbuilder.config is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_placeholder")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("OPENROUTER_API_KEY", "sk-or-test")
# Use litellm's bundled model cost map instead of fetching it at import.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

import uuid  # noqa: E402
from collections.abc import AsyncGenerator  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from gptbuilder.database import Base, get_db  # noqa: E402
from gptbuilder.main import app  # noqa: E402
from gptbuilder.models import (  # noqa: E402
    CreatorConnectAccount,
    UserGPT,
)

# ---------------------------------------------------------------------------
# Per-test database: a single shared in-memory connection
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite engine with every table."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session bound to the per-test database."""
    async with AsyncSession(bind=test_engine, expire_on_commit=False) as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to use the test DB session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Convenience fixtures: creators, connect accounts, listings
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def creator_id() -> str:
    return f"creator-{uuid.uuid4().hex[:8]}"


@pytest_asyncio.fixture
async def onboarded_creator(db_session: AsyncSession, creator_id: str) -> CreatorConnectAccount:
    """A creator whose Express account finished onboarding."""
    account = CreatorConnectAccount(
        user_id=creator_id,
        stripe_account_id=f"acct_{uuid.uuid4().hex[:12]}",
        onboarding_complete=True,
        charges_enabled=True,
        payouts_enabled=True,
    )
    db_session.add(account)
    await db_session.flush()
    return account


@pytest_asyncio.fixture
async def test_gpt(db_session: AsyncSession, creator_id: str) -> UserGPT:
    """A published GPT listing owned by ``creator_id``."""
    gpt = UserGPT(
        user_id=creator_id,
        name="Recipe Helper",
        description="Plans weekly meals from your pantry.",
        monthly_price=Decimal("29.99"),
    )
    db_session.add(gpt)
    await db_session.flush()
    return gpt
