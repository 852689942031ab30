# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# Sets up the test environment before any app imports (core.config and
# core.database read settings at import time) and provides shared fixtures.
# =============================================================================

import os
import tempfile

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================

_DB_PATH = os.path.join(tempfile.mkdtemp(prefix="early-access-tests-"), "signups.db")

os.environ["DATABASE_URL"] = f"sqlite:///{_DB_PATH}"
os.environ.setdefault("IP_SALT", "test-ip-salt")
os.environ.setdefault("BCRYPT_ROUNDS", "4")  # bcrypt minimum; keeps tests fast
os.environ.setdefault("TRUST_PROXY", "1")  # lets tests pick client IPs via X-Forwarded-For
os.environ.setdefault("API_PREFIX", "/api/early-access")

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from core.database import Base, SessionLocal, engine
import models.early_access  # noqa: F401
from utils.rate_limit import SignupRateLimiter


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def fresh_schema():
    """Empty signup table for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def limiter():
    """Default budget: 5 signups per IP per 15 minutes."""
    return SignupRateLimiter(window=timedelta(minutes=15), max_requests=5)


@pytest.fixture
def app(limiter):
    from main import app as fastapi_app

    fastapi_app.state.signup_limiter = limiter
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def signup_url():
    return "/api/early-access/signup"
