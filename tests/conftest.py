"""
Pytest configuration and shared fixtures
"""

import os

# Keep the app out of development mode (no table creation on startup)
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from uuid import uuid4
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient, ASGITransport
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from storeapi.config import get_settings
from storeapi.models import Base
from storeapi.models.user import User
from storeapi.models.geography import State, City, Locality
from storeapi.middleware.authorization import AccessContext
from storeapi.main import app


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Fresh in-memory database and session for each test.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client bound to the app with get_db overridden to the test session.
    """
    from storeapi.models.base import get_db

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


async def _create_user(db_session: AsyncSession, email: str, name: str, role: str) -> User:
    user = User(
        id=uuid4(),
        email=email,
        name=name,
        role=role,
        status="active",
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture(scope="function")
async def test_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "test@example.com", "Test User", "customer")


@pytest_asyncio.fixture(scope="function")
async def other_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "other@example.com", "Other User", "customer")


@pytest_asyncio.fixture(scope="function")
async def admin_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "admin@example.com", "Admin User", "admin")


@pytest_asyncio.fixture(scope="function")
async def locality(db_session: AsyncSession) -> Locality:
    """
    Greater London > London > Marylebone (NW16XE)
    """
    state = State(id=uuid4(), name="Greater London", code="GL")
    city = City(id=uuid4(), name="London", state_id=state.id)
    marylebone = Locality(id=uuid4(), name="Marylebone", pincode="NW16XE", city_id=city.id)
    db_session.add(state)
    await db_session.flush()
    db_session.add(city)
    await db_session.flush()
    db_session.add(marylebone)
    await db_session.commit()
    return marylebone


@pytest_asyncio.fixture(scope="function")
async def second_locality(db_session: AsyncSession, locality: Locality) -> Locality:
    soho = Locality(id=uuid4(), name="Soho", pincode="W1D3QU", city_id=locality.city_id)
    db_session.add(soho)
    await db_session.commit()
    return soho


@pytest.fixture(scope="function")
def user_context(test_user: User) -> AccessContext:
    return AccessContext.for_user(test_user)


@pytest.fixture(scope="function")
def admin_context(admin_user: User) -> AccessContext:
    return AccessContext.for_user(admin_user)


def make_token(user: User, token_type: str = "access", expires_in: timedelta = timedelta(hours=1)) -> str:
    settings = get_settings()
    token_data = {
        "sub": str(user.id),
        "role": user.role,
        "type": token_type,
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(token_data, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture(scope="function")
def auth_headers(test_user: User) -> dict:
    return {"Authorization": f"Bearer {make_token(test_user)}"}


@pytest.fixture(scope="function")
def expired_auth_headers(test_user: User) -> dict:
    return {"Authorization": f"Bearer {make_token(test_user, expires_in=timedelta(minutes=-5))}"}


@pytest.fixture(scope="function")
def refresh_auth_headers(test_user: User) -> dict:
    return {"Authorization": f"Bearer {make_token(test_user, token_type='refresh')}"}


@pytest.fixture(scope="function")
def other_auth_headers(other_user: User) -> dict:
    return {"Authorization": f"Bearer {make_token(other_user)}"}


@pytest.fixture(scope="function")
def admin_headers(admin_user: User) -> dict:
    return {"Authorization": f"Bearer {make_token(admin_user)}"}


@pytest.fixture(scope="function")
def address_payload(locality: Locality) -> dict:
    return {
        "address_line1": "221B Baker Street",
        "address_line2": None,
        "landmark": "near park",
        "locality_id": str(locality.id),
        "is_default": False,
        "contact_name": "Sherlock Holmes",
        "contact_phone": "9876543210",
        "address_type": "HOME",
    }
