"""Pytest configuration and fixtures."""

import os
from datetime import UTC, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from mailstock.database import Base, get_db
from mailstock.main import app
from mailstock.services.engine import EngineConfig, InventoryEngine

# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL", "").startswith("postgresql"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace("/mailstock", "/mailstock_test")
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Wednesday of ISO week 2025-W11 (Mon 2025-03-10 .. Sun 2025-03-16)
NOW = datetime(2025, 3, 12, 10, 0, tzinfo=UTC)
CURRENT_WEEK = "2025-W11"


class FixedClock:
    """Callable clock that tests can move."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        # For PostgreSQL, create the test database
        from sqlalchemy_utils import create_database, database_exists

        # Create test database if it doesn't exist
        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield
    # Don't drop database - just leave it for next run (each test cleans up after itself)


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture
def clock():
    """Clock fixed inside the current test week."""
    return FixedClock(NOW)


@pytest.fixture
def current_week():
    """ISO week identifier containing the fixed clock."""
    return CURRENT_WEEK


@pytest.fixture
def make_engine(db, clock):
    """Build engines on the test session with the fixed clock."""

    def _make(**config) -> InventoryEngine:
        return InventoryEngine(db, EngineConfig(**config), clock=clock)

    return _make


@pytest.fixture
def inventory(make_engine):
    """Engine with default configuration."""
    return make_engine()


@pytest.fixture(scope="function")
def client(db, clock):
    """Create a test client with database override and fixed clock."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.state.clock = clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    app.state.clock = None
