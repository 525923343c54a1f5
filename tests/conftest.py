"""Shared test fixtures."""

import os

# cheap hashes and a fixed secret for the whole test session
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from tavern.core.event_bus import EventBus  # noqa: E402
from tavern.core.security import hash_password  # noqa: E402
from tavern.db.database import get_db  # noqa: E402
from tavern.db.models import Base, UserModel  # noqa: E402
from tavern.main import app  # noqa: E402

# one shared connection so every thread sees the same in-memory database
TEST_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = sessionmaker(bind=TEST_ENGINE, autocommit=False, autoflush=False)


def _override_get_db():
    db = TestSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture(autouse=True)
def _fresh_schema():
    """Empty tables for every test."""
    Base.metadata.create_all(TEST_ENGINE)
    yield
    Base.metadata.drop_all(TEST_ENGINE)


@pytest.fixture()
def client() -> TestClient:
    """FastAPI TestClient wired to an in-memory SQLite database."""
    return TestClient(app)


@pytest.fixture()
def db_session() -> Session:
    """Raw database session for direct DB assertions and service tests."""
    session = TestSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def other_session() -> Session:
    """A second session over the same database, for interleaved requests."""
    session = TestSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def make_user(db_session: Session):
    """Insert a user row directly and return it."""

    def _make(username: str, role: str = "ADVENTURER", password: str = "secret123"):
        user = UserModel(
            email=f"{username}@tavern.io",
            username=username,
            display_name=username.title(),
            role=role,
            password_hash=hash_password(password),
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def register(client: TestClient):
    """Register through the API; returns (token, user dict)."""

    def _register(username: str, role: str = "ADVENTURER", password: str = "secret123"):
        response = client.post(
            "/auth/register",
            json={
                "email": f"{username}@tavern.io",
                "username": username,
                "display_name": username.title(),
                "role": role,
                "password": password,
            },
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return data["token"], data["user"]

    return _register


@pytest.fixture()
def auth():
    """Build a bearer Authorization header."""

    def _auth(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    return _auth
