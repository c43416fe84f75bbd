"""
Pytest configuration and fixtures for the TripBuddy test suite.

Provides:
- Database fixtures (in-memory SQLite engine, session, session factory)
- Local blob store rooted in tmp_path
- httpx MockTransport clients and an offline cache manager wired to them
- Trip fixtures
"""

import os
from typing import Callable, Generator

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment before importing tripbuddy modules
os.environ["TRIPBUDDY_ENVIRONMENT"] = "development"
os.environ.setdefault("TRIPBUDDY_LOG_FORMAT", "console")
os.environ.setdefault("TRIPBUDDY_TILE_URL_TEMPLATE", "")

from tripbuddy.database import init_db
from tripbuddy.models import Trip
from tripbuddy.offline import OfflineCacheManager
from tripbuddy.storage.object_storage import LocalBlobStore


# ─────────────────────────────────────────────────────────────────────────────
# Database Fixtures
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def engine():
    """
    Create an in-memory SQLite engine with all tables.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    """Session factory bound to the test engine."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    """Create a database session for each test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# ─────────────────────────────────────────────────────────────────────────────
# Storage Fixtures
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def blob_store(tmp_path) -> LocalBlobStore:
    """Local blob store in a temporary cache directory."""
    return LocalBlobStore(tmp_path / "cache")


# ─────────────────────────────────────────────────────────────────────────────
# HTTP Fixtures
# ─────────────────────────────────────────────────────────────────────────────

def make_http_client(routes: dict[str, object]) -> httpx.AsyncClient:
    """
    Build an AsyncClient served by a MockTransport.

    Args:
        routes: URL -> response body (bytes), status code (int) or an
            exception instance to raise. Unknown URLs return 404.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        outcome = routes.get(str(request.url), 404)
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, int):
            return httpx.Response(outcome)
        return httpx.Response(200, content=outcome)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def http_routes() -> dict[str, object]:
    """Mutable URL table for the cache manager's HTTP client."""
    return {
        "https://files.example.com/boarding-pass.pdf": b"%PDF-1.4 boarding pass",
        "https://files.example.com/hotel.pdf": b"%PDF-1.4 hotel booking" * 10,
    }


@pytest.fixture
def cache_manager(session_factory, blob_store, http_routes) -> OfflineCacheManager:
    """Offline cache manager on the test database, blob store and mock HTTP."""
    return OfflineCacheManager(
        session_factory=session_factory,
        blob_store=blob_store,
        http_client=make_http_client(http_routes),
        download_timeout=5.0,
        average_tile_kb=15.0,
    )


@pytest.fixture
def cache_manager_factory(session_factory, blob_store) -> Callable[..., OfflineCacheManager]:
    """Build cache managers with custom collaborators on the shared test stores."""

    def factory(**kwargs) -> OfflineCacheManager:
        kwargs.setdefault("session_factory", session_factory)
        kwargs.setdefault("blob_store", blob_store)
        kwargs.setdefault("average_tile_kb", 15.0)
        return OfflineCacheManager(**kwargs)

    return factory


# ─────────────────────────────────────────────────────────────────────────────
# Trip Fixtures
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def sample_trip(db: Session) -> Trip:
    """Create a sample trip for testing."""
    trip = Trip(
        creator_id="user-ana",
        title="Lisbon Getaway",
        destination="Lisbon",
        currency="EUR",
    )
    db.add(trip)
    db.commit()
    db.refresh(trip)
    return trip


@pytest.fixture
def http_client_factory() -> Callable[[dict[str, object]], httpx.AsyncClient]:
    """Expose make_http_client to tests."""
    return make_http_client
