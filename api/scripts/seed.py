"""Seed the database with demo coworking data.

Run with: python -m scripts.seed
Creates one workspace per type, an admin and a client with the welcome bonus,
and prints dev bearer tokens for both.
"""

import asyncio
from decimal import Decimal

from sqlalchemy import select

from coworking.core.auth import create_access_token
from coworking.core.database import async_session_factory, engine
from coworking.models import Base, PaymentMethod, TransactionType, User, UserRole, Workspace, WorkspaceType
from coworking.services.wallet import create_transaction

WELCOME_BONUS = Decimal("5000")

WORKSPACES = [
    {
        "name": "Hair Station 1",
        "type": WorkspaceType.HAIRDRESSER,
        "floor_level": 1,
        "price_per_hour": Decimal("500"),
        "price_per_day": Decimal("3500"),
        "description": "Hydraulic chair by the window, backwash sink alongside.",
        "amenities": ["Wi-Fi", "Natural light", "Locker"],
        "equipment": ["Hydraulic chair", "Backwash unit", "Hood dryer"],
    },
    {
        "name": "Makeup Studio",
        "type": WorkspaceType.MAKEUP,
        "floor_level": 1,
        "price_per_hour": Decimal("600"),
        "price_per_day": Decimal("4000"),
        "description": "Hollywood mirror and daylight lamps for shoots and bridal looks.",
        "amenities": ["Wi-Fi", "Ring light"],
        "equipment": ["Makeup chair", "Hollywood mirror"],
    },
    {
        "name": "Nail Bar 2",
        "type": WorkspaceType.MANICURE,
        "floor_level": 2,
        "price_per_hour": Decimal("400"),
        "price_per_day": Decimal("2800"),
        "description": "Manicure table with extraction hood.",
        "amenities": ["Wi-Fi", "Sterilisation room"],
        "equipment": ["Manicure table", "Dust extractor", "UV lamp"],
    },
    {
        "name": "Cosmetology Cabinet",
        "type": WorkspaceType.COSMETOLOGY,
        "floor_level": 2,
        "price_per_hour": Decimal("900"),
        "price_per_day": Decimal("6000"),
        "description": "Private cabinet with a treatment couch.",
        "amenities": ["Wi-Fi", "Private room", "Sink"],
        "equipment": ["Cosmetology couch", "Magnifying lamp", "Steamer"],
    },
    {
        "name": "Massage Room",
        "type": WorkspaceType.MASSAGE,
        "floor_level": 3,
        "price_per_hour": Decimal("800"),
        "price_per_day": Decimal("5500"),
        "description": "Quiet room with a heated table and shower.",
        "amenities": ["Shower", "Private room"],
        "equipment": ["Massage table", "Towel warmer"],
    },
]


async def seed():
    # Create tables (in dev; production runs migrations)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as db:
        result = await db.execute(select(User).where(User.open_id == "dev-admin"))
        if result.scalar_one_or_none():
            print("Database already seeded, skipping.")
            return

        for i, ws_data in enumerate(WORKSPACES, start=1):
            db.add(Workspace(identifier=f"WP-{i:04d}", **ws_data))

        admin = User(open_id="dev-admin", name="Coworking Admin", email="admin@example.com", role=UserRole.ADMIN)
        client = User(open_id="dev-client", name="Anna Client", email="client@example.com", phone="+70000000000")
        db.add_all([admin, client])
        await db.flush()

        await create_transaction(
            db,
            client.id,
            TransactionType.DEPOSIT,
            WELCOME_BONUS,
            description="Welcome bonus",
            payment_method=PaymentMethod.ONLINE,
        )

        await db.commit()

        print(f"Seeded: {len(WORKSPACES)} workspaces")
        print("  2 users:")
        print(f"    admin  (id {admin.id}): Bearer {create_access_token(str(admin.id))}")
        print(f"    client (id {client.id}, {WELCOME_BONUS} RUB): Bearer {create_access_token(str(client.id))}")


if __name__ == "__main__":
    asyncio.run(seed())
