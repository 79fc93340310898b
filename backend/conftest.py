"""
Pytest configuration and shared fixtures for Newsroom tests.
"""

import os

# Settings are read at import time
os.environ.setdefault("JWT_SECRET_KEY", "test_jwt_secret_key_for_testing_only")
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["STORAGE_BACKEND"] = "sqlite"
os.environ["REDIS_URL"] = ""
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["SENTRY_DSN"] = ""
os.environ.setdefault("SUPABASE_JWT_SECRET", "test_supabase_jwt_secret")
os.environ["ENVIRONMENT"] = "test"

import pytest
from typing import Callable, Dict, Generator
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from unittest.mock import Mock

import newsroom.models  # noqa: F401
from newsroom.main import app
from newsroom.database import Base
from newsroom.models import User
from newsroom.services.auth_service import AuthService
from newsroom.storage import Storage, MemoryStorage, SQLStorage, get_storage
from newsroom.utils.security import hash_password

TEST_PASSWORD = "Str0ng!Password"

# Database setup
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def test_db() -> Generator[Session, None, None]:
    """
    Create a fresh in-memory SQLite database for each test.
    """
    engine = create_engine(
        SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(params=["sqlite", "memory"])
def storage(request, test_db: Session) -> Storage:
    """
    Storage backend under test. Every test using it runs against both
    the SQLAlchemy backend and the in-memory backend.
    """
    if request.param == "memory":
        return MemoryStorage()
    return SQLStorage(test_db)


@pytest.fixture(scope="function")
def client(storage: Storage) -> Generator[TestClient, None, None]:
    """
    Create a test client whose requests all use the storage fixture.
    """
    app.dependency_overrides[get_storage] = lambda: storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# User fixtures
def _create_user(storage: Storage, username: str) -> User:
    return storage.create_user(
        username=username,
        hashed_password=hash_password(TEST_PASSWORD),
        email=f"{username}@example.com",
        description=f"{username}'s profile"
    )


@pytest.fixture
def test_user(storage: Storage) -> User:
    """Create a test user."""
    return _create_user(storage, "alice")


@pytest.fixture
def test_user2(storage: Storage) -> User:
    """Create a second test user for multi-user tests."""
    return _create_user(storage, "bob")


@pytest.fixture
def auth_headers(storage: Storage, test_user: User) -> Dict[str, str]:
    """Authorization header backed by a real session for test_user."""
    token = AuthService.create_user_session(storage, test_user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers2(storage: Storage, test_user2: User) -> Dict[str, str]:
    """Authorization header for test_user2."""
    token = AuthService.create_user_session(storage, test_user2)
    return {"Authorization": f"Bearer {token}"}


# Content fixtures
@pytest.fixture
def make_channel(client: TestClient) -> Callable[..., dict]:
    """Factory creating a channel through the API."""
    def _make(headers: Dict[str, str], name: str = "City Desk", **fields) -> dict:
        response = client.post("/api/channels", json={"name": name, **fields}, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_article(client: TestClient) -> Callable[..., dict]:
    """Factory creating an article through the API."""
    def _make(headers: Dict[str, str], channel_id: int, title: str = "Council approves budget", **fields) -> dict:
        body = {
            "title": title,
            "content": "The council voted 7-2 in favour.",
            "channel_id": channel_id,
            "category": "politics",
            **fields
        }
        response = client.post("/api/articles", json=body, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def channel(make_channel, auth_headers) -> dict:
    """A channel owned by test_user."""
    return make_channel(auth_headers, category="news", location="Springfield")


@pytest.fixture
def article(make_article, auth_headers, channel) -> dict:
    """A published article by test_user in their channel."""
    return make_article(auth_headers, channel["id"], location="Springfield")


# Mock services
@pytest.fixture
def mock_scheduler():
    """
    Mock APScheduler for tests.
    """
    mock = Mock()
    mock.add_job.return_value = Mock(id="test_job_id")
    mock.get_job.return_value = None
    mock.remove_job.return_value = None
    return mock
