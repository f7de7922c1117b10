"""Shared test fixtures.

Each test gets its own engine with freshly created tables. By default that is
an in-memory SQLite database (aiosqlite, one shared connection); point
CW_TEST_DATABASE_URL at a PostgreSQL database to run the same tests with real
row locks.
"""

import os
from datetime import UTC, datetime, time, timedelta
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from coworking.core.auth import create_access_token
from coworking.core.database import get_db
from coworking.main import app
from coworking.models import (
    Base,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
    UserRole,
    Workspace,
    WorkspaceType,
)
from coworking.services.booking_rules import LOCAL_TZ

TEST_DATABASE_URL = os.environ.get("CW_TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


def _make_engine():
    if TEST_DATABASE_URL.startswith("sqlite"):
        return create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)


@pytest.fixture
async def engine():
    engine = _make_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    """A session for service-level tests. Tests commit or roll back themselves."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def _get_test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_test_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Data helpers
# ---------------------------------------------------------------------------


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}


def local_slot(start_hour: int, hours: int = 2, days_ahead: int = 3) -> tuple[datetime, datetime]:
    """A future [start, end) on a local calendar day, returned as aware UTC datetimes."""
    day = datetime.now(LOCAL_TZ).date() + timedelta(days=days_ahead)
    start = datetime.combine(day, time(start_hour), tzinfo=LOCAL_TZ).astimezone(UTC)
    return start, start + timedelta(hours=hours)


async def make_user(session_factory, open_id: str, points: int = 0, balance: Decimal | int = 0, **fields) -> User:
    async with session_factory() as session:
        user = User(open_id=open_id, name=fields.pop("name", open_id.title()), points=points, **fields)
        session.add(user)
        await session.flush()
        if balance:
            session.add(
                Transaction(
                    user_id=user.id,
                    type=TransactionType.DEPOSIT,
                    amount=Decimal(balance),
                    currency="RUB",
                    status=TransactionStatus.COMPLETED,
                    description="Opening balance",
                )
            )
        await session.commit()
        return user


async def make_workspace(session_factory, price_per_hour: Decimal | int = 1000, **fields) -> Workspace:
    async with session_factory() as session:
        workspace = Workspace(
            name=fields.pop("name", "Chair 1"),
            type=fields.pop("type", WorkspaceType.HAIRDRESSER),
            price_per_hour=Decimal(price_per_hour),
            price_per_day=Decimal(price_per_hour) * 8,
            **fields,
        )
        session.add(workspace)
        await session.commit()
        return workspace


@pytest.fixture
async def client_user(session_factory):
    """Bronze client with 5000 RUB on the wallet."""
    return await make_user(session_factory, "client", balance=5000)


@pytest.fixture
async def admin_user(session_factory):
    return await make_user(session_factory, "admin", role=UserRole.ADMIN)


@pytest.fixture
async def workspace(session_factory):
    """1000 RUB/hour hairdresser chair."""
    return await make_workspace(session_factory)
