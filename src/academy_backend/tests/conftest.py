"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
import pytest
from sqlalchemy.orm import sessionmaker

# Every test runs against a private in-memory database
os.environ["DATABASE_URL"] = "sqlite://"

# Ensure academy_backend is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from academy_backend.database import build_engine, get_db
from academy_backend.model import Base
from academy_backend.permissions.principal import Principal
from academy_backend.settings import settings
from academy_backend.tests.fixtures import make_user


@pytest.fixture
def engine():
    """Fresh in-memory engine with the full schema."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def db(engine):
    """Create a new database session for a test."""
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def reset_settings():
    """Tests may patch settings attributes; re-read the environment afterwards."""
    yield
    settings.reload()


@pytest.fixture
def admin(db):
    return make_user(db, level="course_admin")


@pytest.fixture
def admin_principal(admin):
    return Principal.from_user(admin)


@pytest.fixture
def member(db):
    return make_user(db)


@pytest.fixture
def member_principal(member):
    return Principal.from_user(member)


@pytest.fixture
def client(db):
    """TestClient whose requests share the test's session."""
    from fastapi.testclient import TestClient
    from academy_backend.server import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers(user) -> dict:
    return {settings.IDENTITY_HEADER: str(user.id)}
