"""Test configuration and fixtures."""

import os
from datetime import datetime, timedelta
from decimal import Decimal

# Must be set before charter_api builds its module-level engine
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

from charter_api.core.clock import utcnow  # noqa: E402
from charter_api.core.database import Base, build_engine, get_db  # noqa: E402
from charter_api.main import register_routes  # noqa: E402
from charter_api.models import *  # noqa: F403,E402 - Import all models
from charter_api.models import VesselType  # noqa: E402
from charter_api.schemas.operator import CreateOperatorRequest  # noqa: E402
from charter_api.schemas.tour import CreateTourRequest  # noqa: E402
from charter_api.schemas.vessel import CreateVesselRequest  # noqa: E402
from charter_api.services.operator_service import OperatorService  # noqa: E402
from charter_api.services.tour_service import TourService  # noqa: E402
from charter_api.services.vessel_service import VesselService  # noqa: E402

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def _future(hours: float = 48) -> datetime:
    return (utcnow() + timedelta(hours=hours)).replace(second=0, microsecond=0)


@pytest.fixture
def future():
    """Factory for aware UTC times the given number of hours ahead, truncated to the minute."""
    return _future


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = build_engine(TEST_DATABASE_URL, echo=False)

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session):
    """Create a test FastAPI application without lifespan or request middleware."""
    app = FastAPI(
        title="Charter Booking API (Test)",
        description="Test version of the API",
        version="1.0.0-test",
    )

    register_routes(app)

    # Override database dependency
    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db

    yield app

    # Clean up
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def operator(test_session):
    """A persisted operator."""
    return await OperatorService(test_session).create_operator(CreateOperatorRequest(
        name="Campbell River Charters",
        email="info@campbellrivercharters.com",
        phone="+1 (250) 555-0123",
    ))


@pytest_asyncio.fixture
async def other_operator(test_session):
    """A second operator, used to check tenant isolation."""
    return await OperatorService(test_session).create_operator(CreateOperatorRequest(
        name="Tofino Sea Tours",
        email="hello@tofinoseatours.com",
    ))


@pytest_asyncio.fixture
async def small_vessel(test_session, operator):
    """Six-seat fishing boat."""
    return await VesselService(test_session).create_vessel(operator.id, CreateVesselRequest(
        name="The Blue Fin", vessel_type=VesselType.FISHING_BOAT, capacity=6,
    ))


@pytest_asyncio.fixture
async def large_vessel(test_session, operator):
    """Twelve-seat covered vessel."""
    return await VesselService(test_session).create_vessel(operator.id, CreateVesselRequest(
        name="Sea Explorer", vessel_type=VesselType.COVERED_VESSEL, capacity=12,
    ))


@pytest_asyncio.fixture
async def whale_tour(test_session, operator):
    """Three-hour tour."""
    return await TourService(test_session).create_tour(operator.id, CreateTourRequest(
        title="3-Hour Whale Watching Adventure",
        description="Orcas and humpbacks in Discovery Passage",
        price=Decimal("89.99"),
        duration_in_minutes=180,
    ))


@pytest_asyncio.fixture
async def fishing_tour(test_session, operator):
    """Four-hour tour."""
    return await TourService(test_session).create_tour(operator.id, CreateTourRequest(
        title="Salmon Fishing Charter",
        price=Decimal("150.00"),
        duration_in_minutes=240,
    ))


@pytest.fixture
def operator_headers(operator):
    """Tenant header for the default operator."""
    return {"X-Operator-ID": str(operator.id)}


@pytest.fixture
def sample_booking_data():
    """Sample booking data for testing."""
    return {
        "passenger_count": 2,
        "customer_name": "Jane Doe",
        "customer_email": "jane@example.com",
    }
