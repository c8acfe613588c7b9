"""Seed the database with sample GPT listings for local billing runs.

``create_customer_subscription`` needs a listing row to price the checkout
session, and listings are normally written by the builder app. This script
creates a demo creator's listings so the dispatcher can be exercised against
Stripe test mode without the builder.

Run from ``backend/``:
    python -m scripts.seed_data
"""

import asyncio
import sys
from decimal import Decimal
from pathlib import Path

# Add backend to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import delete

from gptbuilder.database import Base, async_session_factory, engine
from gptbuilder.models.gpt import UserGPT

DEMO_CREATOR_ID = "demo-creator"

GPTS = [
    {
        "id": "demo-recipe-helper",
        "name": "Recipe Helper",
        "description": "Plans weekly meals from what is already in your pantry.",
        "monthly_price": Decimal("29.99"),
    },
    {
        "id": "demo-resume-coach",
        "name": "Resume Coach",
        "description": "Rewrites resume bullets for a specific job posting.",
        "monthly_price": Decimal("9.99"),
    },
    {
        # No price: the caller must send monthlyPrice
        "id": "demo-study-buddy",
        "name": "Study Buddy",
        "description": "",
        "monthly_price": None,
    },
]


async def seed() -> None:
    """Create the demo listings.

    Idempotent: the demo creator's listings are deleted and re-created.
    Tables are created first when missing (local SQLite runs).
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as session:
        await session.execute(delete(UserGPT).where(UserGPT.user_id == DEMO_CREATOR_ID))
        await session.flush()

        for gpt_data in GPTS:
            gpt = UserGPT(user_id=DEMO_CREATOR_ID, **gpt_data)
            session.add(gpt)
            price = f"${gpt.monthly_price}/month" if gpt.monthly_price else "no list price"
            print(f"   🤖 {gpt.name} ({gpt.id}): {price}")

        await session.commit()

    await engine.dispose()
    print(f"✅ Created {len(GPTS)} GPT listings for creator '{DEMO_CREATOR_ID}'")


if __name__ == "__main__":
    asyncio.run(seed())
