"""
Yellow Book API: Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all
       tests. Storage-backed fixtures use a throwaway SQLite file per test.
Who:   Used by all test files in the tests/ directory.

Fixture Hierarchy (all function-scoped):
    ├── test_settings: Settings pointing at a temp SQLite file
    ├── database: Database with tables created, disposed after the test
    │   └── gateway: YellowBookGateway over that database
    │       └── app → test_client: FastAPI app + HTTPX AsyncClient
    ├── mock_gateway: AsyncMock gateway (no database)
    ├── sample_entry_payload: a valid create request body
    └── stored_record: a valid stored record (gateway output shape)

Note: httpx's ASGITransport does not run the app lifespan, so the `database`
fixture creates and disposes tables itself.
"""

import os
import tempfile
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must be set BEFORE any yellowbook imports: the settings singleton and the
# module-level app in yellowbook.main are built at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="yellowbook_test_"), "import.db"
)
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests
os.environ["RATE_LIMIT_ENABLED"] = "false"

from yellowbook.config import Settings  # noqa: E402
from yellowbook.database import Database  # noqa: E402
from yellowbook.gateway import YellowBookGateway  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Storage Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def test_settings(database_url):
    """
    Settings for one test: temp database, no rate limit, no startup DDL.
    """
    return Settings(
        database_url=database_url,
        log_level="WARNING",
        rate_limit_enabled=False,
        db_create_tables=False,
        revalidate_seconds=60,
    )


@pytest_asyncio.fixture
async def database(database_url):
    """
    Provides a Database over a fresh SQLite file with tables created.

    Usage:
        async def test_ping(database):
            assert await database.ping()
    """
    db = Database(database_url)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def gateway(database):
    return YellowBookGateway(database)


@pytest.fixture
def mock_gateway():
    """
    Provides a gateway double for service tests.

    Usage:
        mock_gateway.list_all.return_value = [stored_record]
    """
    gw = AsyncMock(spec=YellowBookGateway)
    gw.list_all = AsyncMock(return_value=[])
    gw.get_by_id = AsyncMock(return_value=None)
    gw.create = AsyncMock()
    gw.clear = AsyncMock(return_value=0)
    return gw


# ══════════════════════════════════════════════════════════════════════════
# Data Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def sample_entry_payload():
    """A valid POST /yellow-books body without the optional fields."""
    return {
        "businessName": "Acme",
        "category": "Retail",
        "phoneNumber": "+976-7000-0000",
        "address": "UB",
    }


@pytest.fixture
def stored_record():
    """A record shaped like YellowBookGateway output."""
    created = datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc)
    return {
        "id": 1,
        "businessName": "Nomad IT Solutions",
        "category": "Technology",
        "phoneNumber": "+976-8888-9999",
        "address": "Sukhbaatar district, Ulaanbaatar",
        "description": "Software development",
        "website": "https://nomad-it.mn",
        "createdAt": created,
        "updatedAt": created,
    }


# ══════════════════════════════════════════════════════════════════════════
# HTTP Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def app(test_settings, database):
    from yellowbook.main import create_app
    return create_app(settings=test_settings, database=database)


@pytest_asyncio.fixture
async def test_client(app):
    """
    Provides an async HTTP test client for endpoint testing.

    How:     Uses ASGITransport to route requests directly to the app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/api/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
