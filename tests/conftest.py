"""Pytest fixtures: test client, in-memory SQLite, session tokens."""
import os
import tempfile

import pytest
from fastapi.testclient import TestClient

# Must be set before crackcheck is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("OPENROUTER_API_KEY", "sk-or-test-dummy")
os.environ.setdefault("ADMIN_EMAIL", "admin@example.com")
os.environ.setdefault("ANALYZE_RATE_LIMIT_PER_MINUTE", "5")
os.environ.setdefault("PUBLIC_BASE_URL", "http://testserver")
os.environ.setdefault("SITE_URL", "https://crackcheck.test")
os.environ["STORAGE_DIR"] = tempfile.mkdtemp(prefix="crackcheck-storage-")
# No background image annotation in tests
os.environ["KIE_API_KEY"] = ""
os.environ["CLERK_JWT_KEY"] = ""

from sqlmodel import Session, SQLModel  # noqa: E402

from crackcheck import models  # noqa: E402,F401
from crackcheck.core.database import engine  # noqa: E402
from crackcheck.core.rate_limit import limiter  # noqa: E402
from crackcheck.core.security import create_session_token  # noqa: E402
from crackcheck.main import app  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_state():
    """Fresh tables and rate-limit counters for every test."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    limiter.reset()
    yield


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    with Session(engine) as session:
        yield session


def bearer(user_id: str, email: str | None = None) -> dict:
    claims = {"sub": user_id}
    if email:
        claims["email"] = email
    return {"Authorization": f"Bearer {create_session_token(claims)}"}


@pytest.fixture
def auth_headers():
    return bearer("user_1", "user1@example.com")


@pytest.fixture
def other_headers():
    return bearer("user_2", "user2@example.com")


@pytest.fixture
def admin_headers():
    return bearer("admin_1", "Admin@Example.com")
