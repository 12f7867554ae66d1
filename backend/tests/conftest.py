"""
Pytest configuration for test suite.

Provides in-memory SQLite databases, fake external adapters and an API
client wired to them through dependency overrides.
"""
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add the backend directory to sys.path for imports
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from oeconomia.config import Settings
from oeconomia.database import Base, get_db
from oeconomia.dependencies import get_settings, get_price_service, get_ethereum_service, get_storage
from oeconomia.seed import seed_database
from oeconomia.services.storage import DatabaseStorage
import oeconomia.models  # noqa: F401

from fakes import FakeEthereumService, FakePriceService

TEST_COINGECKO_IDS = {"OEC": "bitcoin", "ELOQ": "ethereum", "ETH": "ethereum"}


def pytest_configure(config):
    """Register custom markers dynamically."""
    config.addinivalue_line(
        "markers", "integration: integration tests that require external services"
    )
    config.addinivalue_line(
        "markers", "unit: unit tests with mocked dependencies"
    )


@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def storage(db_session):
    return DatabaseStorage(db_session)


@pytest_asyncio.fixture
async def seeded_tokens(storage):
    """Default tokens keyed by symbol."""
    await seed_database(storage)
    await storage.commit()
    return {token.symbol: token for token in await storage.get_all_tokens()}


@pytest.fixture
def sync_session_factory():
    """Sessionmaker over a synchronous in-memory SQLite database, for task tests."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    yield factory
    engine.dispose()


@pytest.fixture
def test_settings():
    return Settings(_env_file=None, token_coingecko_ids=TEST_COINGECKO_IDS)


@pytest.fixture
def price_service():
    return FakePriceService(quotes={
        "bitcoin": {"usd": 100.0, "usd_24h_change": 2.5},
        "ethereum": {"usd": 300.0, "usd_24h_change": -1.25},
    })


@pytest.fixture
def ethereum_service():
    return FakeEthereumService()


@pytest_asyncio.fixture
async def api_client(db_session, storage, price_service, ethereum_service, test_settings):
    """HTTP client for the app with storage and adapters replaced by test doubles."""
    from oeconomia.main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_price_service] = lambda: price_service
    app.dependency_overrides[get_ethereum_service] = lambda: ethereum_service
    app.dependency_overrides[get_settings] = lambda: test_settings

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
