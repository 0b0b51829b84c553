"""
Centralized Test Configuration.

Routes live in an in-memory SQLite database; the Driver and Vehicle
services are replaced by in-memory fakes behind httpx.MockTransport.
"""


import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from route_service.app.main import app
from route_service.app.db.session import get_db, Base
from route_service.app.services.party_client import get_driver_client, get_vehicle_client
from route_service.tests.fakes import FakePartyService, make_party_client

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def driver_service():
    return FakePartyService("drivers", {
        1: {"id": 1, "license_number": "B-1001", "name": "Ayu", "email": "ayu@example.com", "status": "available"},
        2: {"id": 2, "license_number": "B-1002", "name": "Budi", "email": "budi@example.com", "status": "on_duty"},
        3: {"id": 3, "license_number": "B-1003", "name": "Citra", "email": "citra@example.com", "status": "Available"},
    })


@pytest.fixture
def vehicle_service():
    return FakePartyService("vehicles", {
        1: {"id": 1, "type": "Truck", "plate_number": "B 1234 XY", "status": "Available"},
        2: {"id": 2, "type": "Van", "plate_number": "B 5678 XY", "status": "InUse"},
        3: {"id": 3, "type": "Van", "plate_number": "B 9012 XY", "status": "available"},
    })


@pytest.fixture
async def driver_client(driver_service):
    client = make_party_client("driver", driver_service)
    yield client
    await client.aclose()


@pytest.fixture
async def vehicle_client(vehicle_service):
    client = make_party_client("vehicle", vehicle_service)
    yield client
    await client.aclose()


@pytest.fixture
async def session_factory():
    """Fresh in-memory database per test."""
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


@pytest.fixture
async def db_session(session_factory):
    """Shared session for fixture data creation and direct service tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def apply_overrides(session_factory, driver_client, vehicle_client):
    """Point the app at the test database and the fake collaborators."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_driver_client():
        yield driver_client

    async def override_get_vehicle_client():
        yield vehicle_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_driver_client] = override_get_driver_client
    app.dependency_overrides[get_vehicle_client] = override_get_vehicle_client
    yield

    app.dependency_overrides = {}


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def route_payload():
    return {
        "driver_id": 1,
        "vehicle_id": 1,
        "start_location": "Jakarta Warehouse",
        "end_location": "Bandung Depot",
        "start_time": "2025-06-10 08:00:00",
        "notes": "Fragile cargo",
    }
