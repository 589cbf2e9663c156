"""
Centralized Test Configuration.

Storage tests run twice: against MemStorage and against DatabaseStorage on an
in-memory SQLite database. API tests drive the FastAPI app through httpx with
get_storage overridden to the same SQLite database.
"""
from datetime import timedelta

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.database import Base
from app.core.dates import days_from_today
from app.core.deps import get_storage
from app.core.security import create_access_token, get_password_hash
from app.models.enums import Role

# Import all models to ensure they're registered with Base
from app.models.user import User  # noqa: F401
from app.models.vehicle import Vehicle  # noqa: F401
from app.models.customer import Customer  # noqa: F401
from app.models.reservation import Reservation  # noqa: F401
from app.models.notification import CustomNotification  # noqa: F401

from app.storage.database import DatabaseStorage
from app.storage.memory import MemStorage

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def day(offset: int) -> str:
    """ISO date `offset` days from today."""
    return days_from_today(offset).isoformat()


@pytest.fixture
async def session_maker():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture(params=["memory", "database"])
async def storage(request, session_maker):
    if request.param == "memory":
        yield MemStorage()
        return
    async with session_maker() as session:
        yield DatabaseStorage(session)


@pytest.fixture
async def make_vehicle(storage):
    counter = iter(range(1, 1000))

    async def _make(**overrides):
        data = {"license_plate": f"AB-{next(counter):03d}-C", "brand": "Volkswagen", "model": "Golf"}
        data.update(overrides)
        return await storage.create_vehicle(data)

    return _make


@pytest.fixture
async def make_customer(storage):
    async def _make(name: str = "Jan de Vries", **overrides):
        return await storage.create_customer({"name": name, **overrides})

    return _make


@pytest.fixture
async def make_reservation(storage):
    async def _make(vehicle_id, start_date, end_date=None, **overrides):
        data = {"vehicle_id": vehicle_id, "start_date": start_date, "end_date": end_date}
        data.update(overrides)
        return await storage.create_reservation(data)

    return _make


# -------------------------------------------------
# API fixtures
# -------------------------------------------------

@pytest.fixture
async def api_session_maker(session_maker):
    async def override_get_storage():
        async with session_maker() as session:
            yield DatabaseStorage(session)

    app.dependency_overrides[get_storage] = override_get_storage
    yield session_maker
    app.dependency_overrides = {}


@pytest.fixture
async def client(api_session_maker):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def _create_user(session_maker, username: str, role: str, permissions=None):
    async with session_maker() as session:
        return await DatabaseStorage(session).create_user({
            "username": username,
            "password_hash": get_password_hash("Secret@123"),
            "role": role,
            "permissions": permissions or [],
            "is_active": True,
        })


def _headers(user) -> dict:
    token = create_access_token({"sub": str(user.id), "role": user.role}, expires_delta=timedelta(minutes=10))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin_headers(api_session_maker):
    admin = await _create_user(api_session_maker, "admin", Role.admin.value)
    return _headers(admin)


@pytest.fixture
async def viewer_headers(api_session_maker):
    viewer = await _create_user(
        api_session_maker, "viewer", Role.user.value, ["view_vehicles", "view_reservations"]
    )
    return _headers(viewer)
