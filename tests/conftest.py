import pytest
from fastapi.testclient import TestClient

from relay.clock import MonotonicClock
from relay.config import Settings
from relay.main import create_app
from relay.storage import Database


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        jwt_secret="relay-test-signing-key-0123456789abcdef",
        log_level="WARNING",
    )


@pytest.fixture
def clock():
    return MonotonicClock()


@pytest.fixture
def db():
    """Session over a fresh in-memory database."""
    database = Database("sqlite://")
    database.init()
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()
        database.dispose()


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


def _register(client):
    res = client.post("/register")
    assert res.status_code == 201
    return res.json()


@pytest.fixture
def alice(client):
    return _register(client)


@pytest.fixture
def bob(client):
    return _register(client)


@pytest.fixture
def carol(client):
    return _register(client)
