# backend/tests/conftest.py
"""
Shared fixtures: a fresh store / app per test and a controllable clock.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from wallet.core.config import Settings
from wallet.core.security import Claims
from wallet.main import create_app
from wallet.services.accounts import AccountService
from wallet.services.sql_store import SqlAlchemyStore
from wallet.services.store import InMemoryStore, Role

ADMIN_PASSWORD = "SecureAdmin123!"


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakeMonotonic:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def make_claims(user_id="u-1", role=Role.USER, username="someone"):
    now = datetime.now(timezone.utc)
    return Claims(
        subject_id=user_id,
        username=username,
        role=role,
        token_id="jti-" + user_id,
        issued_at=now,
        expires_at=now + timedelta(hours=1),
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(params=["memory", "sqlalchemy"])
def store(request):
    if request.param == "memory":
        return InMemoryStore()
    return SqlAlchemyStore("sqlite:///:memory:")


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def accounts(memory_store):
    return AccountService(memory_store, starting_balance=1000)


@pytest.fixture
def settings():
    return Settings(_env_file=None, seed_admin=True, store_backend="memory")


@pytest.fixture
def app(settings):
    return create_app(settings, store=InMemoryStore())


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def services(app):
    return app.state.services


@pytest.fixture
def make_user(services):
    """Create a user straight through the services and hand back (user, auth headers)."""

    def _make(username, role=Role.USER, password="Password1", balance=None):
        user = services.accounts.register(
            username, password, f"{username}@example.com", role=role, balance=balance
        )
        token = services.tokens.issue(user)
        return user, {"Authorization": f"Bearer {token}"}

    return _make
