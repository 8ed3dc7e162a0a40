# tests/conftest.py
# PURPOSE: create a TestClient and override DB dependency to use a temp SQLite file.

# Ensure project root is on sys.path so `import taskflow` works when running pytest.
import sys, os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Settings are read at import time: the secret is mandatory, bcrypt kept cheap.
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_CONNECT_RETRIES", "1")

from datetime import UTC, datetime, timedelta
import tempfile
from typing import Dict

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from taskflow.db import Base  # DB metadata
from taskflow.main import app  # FastAPI app
from taskflow.rate_limit import limiter
from taskflow.store_db import get_db  # original dependency to override


@pytest.fixture()
def session_factory():
    # 1) Create a temporary SQLite file (so data is isolated per test)
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    test_db_url = f"sqlite:///{tmp.name}"

    # 2) Create a new engine/session factory for tests
    engine = create_engine(test_db_url, connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # 3) Create tables for tests
    Base.metadata.create_all(bind=engine)

    yield TestingSessionLocal

    # 4) Cleanup: drop tables, dispose engine, delete temp file
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    os.unlink(tmp.name)


@pytest.fixture()
def db(session_factory):
    """Plain session for store-level tests and for inspecting API side effects."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    # Override the app's get_db dependency to use the temp database
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # Limiter storage is process-wide; start every test with a clean budget
    limiter.reset()

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


# --- Helpers ---------------------------------------------------------------


def signup(client, username: str = "alice", email: str = "alice@example.com", password: str = "Secret1!"):
    return client.post(
        "/auth/signup", json={"username": username, "email": email, "password": password}
    )


def signin(client, email: str = "alice@example.com", password: str = "Secret1!"):
    return client.post("/auth/signin", json={"email": email, "password": password})


def login_headers(client, username: str = "alice", email: str | None = None, password: str = "Secret1!") -> Dict[str, str]:
    """Sign up + sign in; return the Authorization header."""
    email = email or f"{username}@example.com"
    r = signup(client, username, email, password)
    assert r.status_code == 201, r.text
    r = signin(client, email, password)
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['token']}"}


def task_payload(name: str = "T1", *, days: int = 1, offset_days: int = 0, **extra) -> Dict:
    start = datetime(2025, 1, 6, 9, 0, tzinfo=UTC) + timedelta(days=offset_days)
    payload = {
        "task": name,
        "start": start.isoformat(),
        "finish": (start + timedelta(days=days)).isoformat(),
        "status": "Todo",
    }
    payload.update(extra)
    return payload


@pytest.fixture()
def auth_headers(client) -> Dict[str, str]:
    return login_headers(client)
