"""
Shared fixtures.

Every test gets a fresh app bound to an in-memory SQLite database, with the
scheduler off and live delivery running inline.
"""

from datetime import date

import pytest

from dailyvibes import create_app
from dailyvibes.config import TestingConfig
from dailyvibes.extensions import db
from dailyvibes.models import Friendship, User


@pytest.fixture
def app():
    app = create_app(config_object=TestingConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(username: str, **fields) -> User:
        u = User(username=username, email=f"{username}@example.com", **fields)
        u.set_password("secret123")
        db.session.add(u)
        db.session.commit()
        return u

    return _make


@pytest.fixture
def befriend(app):
    def _befriend(a: User, b: User) -> None:
        db.session.add(Friendship(user_id=a.id, friend_id=b.id))
        db.session.add(Friendship(user_id=b.id, friend_id=a.id))
        db.session.commit()

    return _befriend


@pytest.fixture
def register(client):
    """Register through the API and return bearer headers."""

    def _register(username: str, password: str = "secret123") -> dict:
        resp = client.post("/api/auth/register", json={
            "username": username,
            "email": f"{username}@example.com",
            "password": password,
            "confirmPassword": password,
        })
        assert resp.status_code == 201, resp.get_json()
        token = resp.get_json()["data"]["token"]
        return {"Authorization": f"Bearer {token}"}

    return _register


@pytest.fixture
def freeze_today(monkeypatch):
    def _freeze(day: date) -> None:
        monkeypatch.setattr("dailyvibes.utils.clock.vibe_today", lambda: day)

    return _freeze
