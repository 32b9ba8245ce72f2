"""
Test fixtures for vocab-lists.

Each test gets its own file-based SQLite database; the settings object the
storage layer reads is swapped for one pointing at it.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from vocab_lists.data.list_repo import ListRepo
from vocab_lists.data.quota_repo import QuotaRepo
from vocab_lists.data.test_repo import TestRepo
from vocab_lists.data.user_repo import UserRepo
from vocab_lists.db import database
from vocab_lists.service.list_service import ListService
from vocab_lists.service.recorder import TestResultRecorder


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Fresh schema in a temp file."""
    monkeypatch.setattr(database, "settings", replace(database.settings, DB_PATH=tmp_path / "test.db"))
    database.init_db()
    return tmp_path / "test.db"


@pytest.fixture
def user_id(db):
    return UserRepo().create_user("alice", "x").id


@pytest.fixture
def other_user_id(db):
    return UserRepo().create_user("bob", "x").id


@pytest.fixture
def list_service(db):
    return ListService(ListRepo())


@pytest.fixture
def recorder(db):
    return TestResultRecorder(TestRepo())


@pytest.fixture
def quota_repo(db):
    return QuotaRepo()


@pytest.fixture
def animals(list_service, user_id):
    """Five-item manual list: Cat, Dog, Bird, Fish, Lion."""
    words = ["Cat", "Dog", "Bird", "Fish", "Lion"]
    return list_service.create_list(user_id, "Animals", "manual", None, list(enumerate(words, start=1)))


class FakeClock:
    """Settable UTC clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 14, 22, 30, tzinfo=timezone.utc))


# -------------------------
# HTTP
# -------------------------
@pytest.fixture
def app(db):
    from vocab_lists.main import app as fastapi_app

    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Unauthenticated test client."""
    return TestClient(app)


@pytest.fixture
def auth_client(client):
    """Client registered and signed in as 'tester' (bearer token)."""
    resp = client.post("/api/auth/register", json={"username": "tester", "password": "secret123"})
    assert resp.status_code == 201
    client.headers["Authorization"] = f"Bearer {resp.json()['token']}"
    return client


@pytest.fixture
def make_list(auth_client):
    """Create a manual list through the API and return its JSON."""

    def _make(words=("Cat", "Dog", "Bird", "Fish", "Lion"), name="Animals"):
        resp = auth_client.post(
            "/api/lists",
            json={
                "name": name,
                "source": "manual",
                "items": [{"position": i, "display": w} for i, w in enumerate(words, start=1)],
            },
        )
        assert resp.status_code == 201, resp.text
        return resp.json()["list"]

    return _make
