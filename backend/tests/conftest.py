"""Shared test configuration and fixtures.

Every test gets its own in-memory SQLite database (aiosqlite) with all tables
created from the models, so tests never need a running PostgreSQL and never
see each other's rows.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import uuid  # noqa: E402
from collections.abc import AsyncGenerator  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.auth.jwt import create_token_pair  # noqa: E402
from app.auth.passwords import hash_password  # noqa: E402
from app.auth.permissions import resolve_permissions  # noqa: E402
from app.database import create_all, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.catalog_service import CatalogService  # noqa: E402
from app.models.user import User  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ---------------------------------------------------------------------------
# Per-test database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine():
    """A fresh in-memory database; StaticPool keeps the single connection alive."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session bound to the per-test database."""
    session = AsyncSession(bind=test_engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()


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
# Convenience fixtures: staff accounts
# ---------------------------------------------------------------------------


async def _make_user(db: AsyncSession, role: str, permissions: dict[str, bool] | None = None) -> User:
    unique = uuid.uuid4().hex[:8]
    user = User(
        username=f"{role}-{unique}",
        hashed_password=hash_password("testpass123"),
        name=f"Test {role.title()}",
        role=role,
        permissions=resolve_permissions(role, permissions),
        is_active=True,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


def _headers(user: User) -> dict[str, str]:
    tokens = create_token_pair(str(user.id), role=user.role)
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "admin")


@pytest_asyncio.fixture
async def auth_headers(admin_user: User) -> dict[str, str]:
    """Authorization headers for an admin (holds every permission)."""
    return _headers(admin_user)


@pytest_asyncio.fixture
async def reception_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "reception")


@pytest_asyncio.fixture
async def reception_headers(reception_user: User) -> dict[str, str]:
    """Authorization headers for a reception account with default toggles."""
    return _headers(reception_user)


# ---------------------------------------------------------------------------
# Convenience fixtures: apartment, customer, catalog
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_apartment(client: AsyncClient, auth_headers: dict) -> dict:
    """A unit at 1000 EGP/night with a 24000 EGP monthly rate."""
    response = await client.post(
        "/api/v1/apartments",
        json={
            "unit_number": "A-101",
            "floor": 1,
            "rooms": 2,
            "view": "Sea View",
            "daily_price": "1000",
            "monthly_price": "24000",
        },
        headers=auth_headers,
    )
    assert response.status_code == 201, f"Failed to create test apartment: {response.text}"
    return response.json()


@pytest_asyncio.fixture
async def test_customer(client: AsyncClient, auth_headers: dict) -> dict:
    response = await client.post(
        "/api/v1/customers",
        json={"name": "Test Guest", "phone": "+201000000000", "email": "guest@example.com"},
        headers=auth_headers,
    )
    assert response.status_code == 201, f"Failed to create test customer: {response.text}"
    return response.json()


@pytest_asyncio.fixture
async def catalog(db_session: AsyncSession) -> dict[str, CatalogService]:
    """The starter catalog, keyed by name."""
    services = {
        "Standard Cleaning": CatalogService(name="Standard Cleaning", price=Decimal("200")),
        "Airport Transfer": CatalogService(name="Airport Transfer", price=Decimal("500")),
    }
    db_session.add_all(services.values())
    await db_session.flush()
    return services
