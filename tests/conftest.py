# tests/conftest.py
"""
Pytest configuration and fixtures.
"""

import os
import uuid

import pytest

# Set test environment before any support_lifecycle import
os.environ.setdefault("TESTING", "1")
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JOB_API_KEY"] = "test-job-key"


@pytest.fixture
def db_session():
    """Fresh in-memory database per test."""
    from support_lifecycle import models  # noqa: F401
    from support_lifecycle.database import Base, SessionLocal, engine

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(db_session):
    """Factory: create a user with the given role list and optional password."""
    from support_lifecycle.models import User
    from support_lifecycle.services.password_policy import hash_password

    def _make(roles=None, password=None, email=None):
        user = User(
            email=email or f"{uuid.uuid4().hex[:8]}@example.com",
            role_list=list(roles or []),
            password_hash=hash_password(password) if password else None,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user(roles=["system-admin"], password="Old-passw0rd!")


@pytest.fixture
def agent_user(make_user):
    return make_user(roles=[{"key": "support-agent"}], password="Old-passw0rd!")


@pytest.fixture
def app_config(db_session):
    from support_lifecycle.services.settings_resolver import ensure_app_configuration

    return ensure_app_configuration(db_session)
