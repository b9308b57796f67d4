"""Shared fixtures: an in-memory SQLite database swapped in for get_db."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401 - register models
from core.database import get_db
from models.base import Base


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def sent_emails(monkeypatch):
    """Capture outgoing verification emails instead of sending them."""
    sent: list[dict] = []

    def fake_send(to, verify_url, otp, expire_minutes):
        sent.append({"to": to, "verify_url": verify_url, "otp": otp})

    monkeypatch.setattr("routers.auth_router.send_signup_email", fake_send)
    monkeypatch.setattr("routers.auth_router.send_password_reset_email", fake_send)
    return sent


@pytest.fixture
def client(session_factory, sent_emails):
    from main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # Not used as a context manager: startup would create tables in the real database.
    yield TestClient(app)
    app.dependency_overrides.clear()
