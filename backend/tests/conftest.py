"""Shared fixtures."""
import pytest

from rollcall import create_app
from rollcall.services.event_bus import SessionEventBus
from rollcall.services.session_store import SessionStore
from rollcall.services.token_service import TokenService


@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    yield app
    app.extensions['rollcall'].lifecycle.shutdown()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def services(app):
    """Core services of the test app."""
    return app.extensions['rollcall']


@pytest.fixture
def store():
    return SessionStore(TokenService())


@pytest.fixture
def event_bus():
    return SessionEventBus()
