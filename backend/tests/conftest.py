"""Shared test configuration and fixtures.

Uses a transactional rollback strategy per test for full isolation:
- Each test gets its own engine and schema. By default that is an in-memory
  SQLite database (aiosqlite); set ``TEST_DATABASE_URL`` to run against
  PostgreSQL instead.
- The session is bound to a connection whose outer transaction always rolls
  back after the test.
"""

import os
from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from app.auth.jwt import create_access_token
from app.database import Base, get_db
from app.main import app
from app.models.enums import ResourceKind
from app.models.member import Member
from app.models.resource import Resource
from app.services.locks import ResourceLockRegistry
from app.services.orchestrator import BookingOrchestrator

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
TEST_ACTOR = "admin-session-1"


def make_engine(url: str = TEST_DATABASE_URL) -> AsyncEngine:
    if url.startswith("sqlite"):
        return create_async_engine(
            url,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(url, echo=False, pool_pre_ping=True)


# ---------------------------------------------------------------------------
# Per-test engine and transactional session
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an engine with a fresh schema for one test."""
    engine = make_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session wrapped in a transaction that always rolls back."""
    async with test_engine.connect() as connection:
        transaction = await connection.begin()
        session = AsyncSession(bind=connection, expire_on_commit=False)

        try:
            yield session
        finally:
            await session.close()
            await transaction.rollback()


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


@pytest_asyncio.fixture
async def auth_headers() -> dict[str, str]:
    """Return Authorization headers for the test admin session."""
    return {"Authorization": f"Bearer {create_access_token(TEST_ACTOR)}"}


@pytest_asyncio.fixture
async def orchestrator(db_session: AsyncSession) -> BookingOrchestrator:
    return BookingOrchestrator(db_session, locks=ResourceLockRegistry())


# ---------------------------------------------------------------------------
# Convenience fixtures: member and one resource per kind
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def member(db_session: AsyncSession) -> Member:
    member = Member(membership_no="M-2001", name="Test Member")
    db_session.add(member)
    await db_session.flush()
    await db_session.refresh(member)
    return member


async def _add_resource(db_session: AsyncSession, **fields) -> Resource:
    resource = Resource(**fields)
    db_session.add(resource)
    await db_session.flush()
    await db_session.refresh(resource)
    return resource


@pytest_asyncio.fixture
async def room(db_session: AsyncSession) -> Resource:
    return await _add_resource(
        db_session,
        kind=ResourceKind.ROOM,
        name="Room 101",
        member_price=Decimal("5000"),
        guest_price=Decimal("8000"),
    )


@pytest_asyncio.fixture
async def hall(db_session: AsyncSession) -> Resource:
    return await _add_resource(
        db_session,
        kind=ResourceKind.HALL,
        name="Banquet Hall",
        member_price=Decimal("100000"),
        guest_price=Decimal("150000"),
        max_guests=300,
    )


@pytest_asyncio.fixture
async def lawn(db_session: AsyncSession) -> Resource:
    return await _add_resource(
        db_session,
        kind=ResourceKind.LAWN,
        name="Front Lawn",
        member_price=Decimal("60000"),
        guest_price=Decimal("90000"),
        min_guests=50,
        max_guests=500,
    )


@pytest_asyncio.fixture
async def photoshoot(db_session: AsyncSession) -> Resource:
    return await _add_resource(
        db_session,
        kind=ResourceKind.PHOTOSHOOT,
        name="Studio Session",
        member_price=Decimal("10000"),
        guest_price=Decimal("16000"),
    )
