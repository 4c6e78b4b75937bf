"""Pytest fixtures for WorkTrack tests."""

import pytest
from app import create_app
from app.extensions import db as _db
from app.services import projects, users


@pytest.fixture(scope="session")
def app():
    """Create application for testing."""
    app = create_app("testing")
    return app


@pytest.fixture(scope="function")
def db(app):
    """Fresh tables for every test."""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app, db):
    """Create a test client."""
    return app.test_client()


@pytest.fixture
def user(db):
    return users.create_user(
        {"username": "alice", "email": "alice@example.com", "name": "Alice", "role": "QA"}
    )


@pytest.fixture
def other_user(db):
    return users.create_user({"username": "bob", "email": "bob@example.com", "name": "Bob"})


@pytest.fixture
def project(db, user):
    return projects.create_project({"key": "ACME", "name": "Acme Platform"}, caller_id=user.id)


@pytest.fixture
def auth_headers(user):
    return {"X-User-Id": str(user.id)}


@pytest.fixture
def enforce_transitions(app, monkeypatch):
    monkeypatch.setitem(app.config, "ENFORCE_STATUS_TRANSITIONS", True)
