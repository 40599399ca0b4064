"""
Global test configuration and fixtures for Hotkey Tracker

This module provides shared test fixtures: a temporary SQLite database per
test, the services wired on top of it, and a FastAPI client running the full
application lifespan.
"""

from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from hotkey_tracker.core.config import Settings
from hotkey_tracker.core.limiter import limiter
from hotkey_tracker.db.init_db import init_database
from hotkey_tracker.db.session import create_db_engine, create_session_factory
from hotkey_tracker.main import create_app
from hotkey_tracker.services.export import ReadGateway
from hotkey_tracker.services.ingestion import TelemetryIngestionService
from hotkey_tracker.services.lifecycle import SessionLifecycleManager
from hotkey_tracker.services.session_store import SessionStore
from tests.utils.factories import RecordingAnnouncer

TEST_API_SECRET = "test-api-secret"


# ============================================================================
# Test Environment Setup
# ============================================================================

@pytest.fixture(scope="function")
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway database with small quotas"""
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'sessions.db'}",
        api_secret=TEST_API_SECRET,
        public_url="http://testserver",
        max_sessions=5,
        max_logs_per_session=3,
        max_clicks_per_session=2,
        rate_limit_enabled=False,
        log_json=False,
        discord_token=None,
        discord_channel_id=None,
    )


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def engine(tmp_path: Path):
    """Create a test database for each test function"""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'store.db'}")
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def store(engine) -> SessionStore:
    return SessionStore(create_session_factory(engine))


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def announcer() -> RecordingAnnouncer:
    return RecordingAnnouncer()


@pytest.fixture(scope="function")
def lifecycle(store, announcer) -> SessionLifecycleManager:
    return SessionLifecycleManager(store, announcer, max_sessions=5)


@pytest.fixture(scope="function")
def ingestion(store, lifecycle) -> TelemetryIngestionService:
    return TelemetryIngestionService(
        store, lifecycle, max_logs_per_session=3, max_clicks_per_session=2
    )


@pytest.fixture(scope="function")
def gateway(store) -> ReadGateway:
    return ReadGateway(store, "Europe/Moscow")


# ============================================================================
# Application Client Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def app(test_settings, announcer):
    return create_app(test_settings, announcer=announcer)


@pytest.fixture(scope="function")
def client(app):
    """Create FastAPI test client; entering it runs the lifespan"""
    limiter.reset()
    with TestClient(app) as test_client:
        yield test_client
    limiter.reset()


@pytest_asyncio.fixture(scope="function")
async def async_client(client, app):
    """Create async test client for concurrent requests against a started app"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_test_client:
        yield async_test_client


@pytest.fixture(scope="function")
def auth_headers():
    return {"Authorization": f"Bearer {TEST_API_SECRET}"}


# ============================================================================
# Test Markers and Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "unit: isolated service and helper tests")
    config.addinivalue_line("markers", "integration: tests running the full application")
    config.addinivalue_line("markers", "api: HTTP endpoint tests")
