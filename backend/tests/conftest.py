# backend/tests/conftest.py
"""
Pytest configuration for the booking engine.

Every test gets a fresh in-memory SQLite database (StaticPool, so all
sessions and threads share one connection) and the process-local slot lock
backend. Tests that need real concurrency use the file-backed
``file_engine`` instead.
"""

import os
import sys

# CRITICAL: Set testing mode BEFORE any app imports!
os.environ["is_testing"] = "true"
os.environ["BOOKING_LOCK_BACKEND"] = "local"

# Add the backend directory to Python path so imports work
backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, backend_dir)

# NOW we can set the settings
from app.core.config import settings

settings.is_testing = True
settings.booking_lock_backend = "local"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.dependencies.database import get_db
from app.core.enums import RoleName
from app.database import Base, build_engine
from app.main import app as fastapi_app
from app.models.trip import Trip
from app.principal import Actor
from tests.factories.trip_builders import auth_headers_for, create_trip, new_id

# ============================================================================
# DATABASE
# ============================================================================


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory schema per test."""
    test_engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


@pytest.fixture(scope="function")
def db(session_factory):
    """Create a new database session for each test."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(scope="function")
def file_engine(tmp_path):
    """File-backed SQLite engine for tests that hold several connections at once."""
    test_engine = build_engine(f"sqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def client(db: Session):
    """Create a test client bound to the test session."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    fastapi_app.dependency_overrides[get_db] = override_get_db

    test_client = TestClient(fastapi_app)

    yield test_client

    # Cleanup
    fastapi_app.dependency_overrides.clear()
    test_client.close()


# ============================================================================
# ACTORS
# ============================================================================


@pytest.fixture
def guide() -> Actor:
    return Actor(id=new_id(), role=RoleName.GUIDE)


@pytest.fixture
def other_guide() -> Actor:
    return Actor(id=new_id(), role=RoleName.GUIDE)


@pytest.fixture
def tourist() -> Actor:
    return Actor(id=new_id(), role=RoleName.TOURIST)


@pytest.fixture
def other_tourist() -> Actor:
    return Actor(id=new_id(), role=RoleName.TOURIST)


@pytest.fixture
def admin() -> Actor:
    return Actor(id=new_id(), role=RoleName.ADMIN)


@pytest.fixture
def auth_headers_guide(guide: Actor) -> dict:
    return auth_headers_for(guide)


@pytest.fixture
def auth_headers_other_guide(other_guide: Actor) -> dict:
    return auth_headers_for(other_guide)


@pytest.fixture
def auth_headers_tourist(tourist: Actor) -> dict:
    return auth_headers_for(tourist)


@pytest.fixture
def auth_headers_other_tourist(other_tourist: Actor) -> dict:
    return auth_headers_for(other_tourist)


@pytest.fixture
def auth_headers_admin(admin: Actor) -> dict:
    return auth_headers_for(admin)


# ============================================================================
# TRIPS
# ============================================================================


@pytest.fixture
def trip_factory(db: Session):
    def _factory(guide_id: str, **kwargs) -> Trip:
        return create_trip(db, guide_id, **kwargs)

    return _factory


@pytest.fixture
def petra_trip(trip_factory, guide: Actor) -> Trip:
    """The guide's "Petra Day Tour" with one slot on 2025-06-15 at 09:00."""
    return trip_factory(guide.id)
