"""
Shared fixtures: a fresh app + in-memory database per test.
"""
from datetime import datetime, timedelta

import pytest

from app import create_app
from config import TestConfig
from models import db
from models.user import User
from utils.mail import mail

PASSWORD = "correct-horse"


@pytest.fixture
def app():
    app = create_app(TestConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def outbox(app):
    with mail.record_messages() as messages:
        yield messages


@pytest.fixture
def make_user(app):
    """Insert a user and return it detached (column attributes loaded)."""
    def _make_user(email="jane.doe@example.com", password=PASSWORD, **fields):
        with app.app_context():
            user = User(email=email, name=fields.pop("name", "Jane"), phone="+14155552671",
                        credit_card="4111111111111111", **fields)
            user.password = password
            db.session.add(user)
            db.session.commit()
            db.session.refresh(user)
            db.session.expunge(user)
            return user
    return _make_user


@pytest.fixture
def logged_in(client, make_user):
    """Client signed in as a fresh user; returns the user."""
    user = make_user()
    resp = client.post("/auth/login", json={"email": user.email, "password": PASSWORD})
    assert resp.status_code == 200
    return user


@pytest.fixture
def frozen_now(monkeypatch):
    """Pin utils.auth_utils.utcnow; returns a setter taking a datetime or timedelta kwargs."""
    state = {"now": datetime(2024, 1, 1, 12, 0, 0)}
    monkeypatch.setattr("utils.auth_utils.utcnow", lambda: state["now"])

    def _set(value=None, **delta):
        if value is not None:
            state["now"] = value
        elif delta:
            state["now"] = state["now"] + timedelta(**delta)
        return state["now"]
    return _set
