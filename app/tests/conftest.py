"""
Pytest configuration and shared fixtures for the Carbon Offset API test suite.

This module provides:
- Database fixtures (in-memory SQLite for fast tests)
- A sample EPA CSV and the catalog built from it
- FastAPI test client fixtures with dependency overrides
- Bearer token helpers for admin routes
"""

import io
import os

# Settings are read at import time by core.db; point them at test values first.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret-with-enough-bytes-for-hs256")
os.environ.setdefault("CLIENT_URL", "http://localhost:8080")

from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import models  # noqa: F401  registers every table on Base.metadata
from auth.auth_handler import sign_jwt
from core.db import Base, get_db
from main import create_app
from middleware.rate_limit import limiter
from routers.vehicles import get_vehicle_catalog
from services.catalog_builder import build_catalog, load_vehicle_frame, project_frame, write_catalog
from services.vehicle_catalog import VehicleCatalog


# Test Database Configuration
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

SAMPLE_CSV = """year,make,model,comb08,city08,highway08,fuelType,fuelType1,cylinders,displ,trany,trans_dscr,drive
2024," Toyota "," Camry ",32,28,39,Regular,Regular Gasoline,4,2.5,Automatic (S8),,Front-Wheel Drive
2024,Toyota,Corolla,35,32,41,Regular,Regular Gasoline,4,2.0,Automatic (variable gear ratios),CVT,Front-Wheel Drive
2024,Toyota,Camry,34,30,41,Regular,Regular Gasoline,4,2.5,Automatic (S8),,Front-Wheel Drive
2009,Ford,Focus,30,26,34,Regular,Regular Gasoline,4,2.0,Manual 5-spd,,Front-Wheel Drive
2022,Tesla,Model 3,0,,,Electricity,Electricity,,,Automatic (A1),,Rear-Wheel Drive
2022,Honda,Civic,36,31,40,Regular,,4.0,1.5,Automatic (AV-S7),CVT,Front-Wheel Drive
2023,Ford,F150 Pickup 2WD,20,,,,,,,,,
2021,,Mystery,25,,,,,,,,,
2027,BMW,X5,25,,,,,,,,,
"""


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Rate limit counters are process-wide; start every test with a clean window."""
    limiter.reset()
    yield


@pytest.fixture
def sample_csv_path(tmp_path):
    path = tmp_path / "vehicles.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return path


@pytest.fixture
def sample_csv_text():
    return SAMPLE_CSV


@pytest.fixture
def sample_vehicles():
    """Projected rows of SAMPLE_CSV, before deduplication."""
    return project_frame(load_vehicle_frame(io.StringIO(SAMPLE_CSV)))


@pytest.fixture
def sample_catalog(sample_vehicles):
    return build_catalog(sample_vehicles)


@pytest.fixture
def catalog_path(tmp_path, sample_catalog):
    return write_catalog(sample_catalog, [tmp_path / "data" / "vehicles.json"])[0]


@pytest.fixture
def vehicle_catalog(catalog_path) -> VehicleCatalog:
    return VehicleCatalog([catalog_path])


@pytest.fixture
async def async_engine():
    """Create async engine for testing with in-memory SQLite."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def async_db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for testing."""
    async_session = async_sessionmaker(async_engine, expire_on_commit=False)

    async with async_session() as session:
        yield session


@pytest.fixture
def test_app(async_db_session, vehicle_catalog):
    """Full application with the database and catalog swapped for test doubles."""
    app = create_app()

    async def override_get_db():
        yield async_db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_vehicle_catalog] = lambda: vehicle_catalog
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client bound to the test application."""
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as client:
        yield client


@pytest.fixture
def admin_headers():
    token = sign_jwt("admin@example.com", is_admin=True)["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers():
    token = sign_jwt("user@example.com", is_admin=False)["access_token"]
    return {"Authorization": f"Bearer {token}"}