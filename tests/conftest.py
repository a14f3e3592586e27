"""
tests/conftest.py -- Shared test fixtures for the marketplace API tests.

This module provides:
  - make_settings(): Settings pointing at an isolated named in-memory SQLite DB
  - user_store / product_store: bare stores for unit tests
  - api: a running TestClient plus helpers to create accounts and tokens

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares one
in-memory instance across all connections in the process. Every fixture gets
a fresh uuid-based name so tests never see each other's rows.

Rate limiting is disabled in the default settings so login can be called as
often as the tests need; limited_api turns it back on.
"""

from __future__ import annotations

import uuid
from collections.abc import Generator
from dataclasses import dataclass

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import create_app
from auth.models import Role, User
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from catalog.store import ProductStore
from core.config import Settings

TEST_SECRET = "test-secret-key-for-the-marketplace-suite-0123456789"


def make_settings(**overrides) -> Settings:
    """Return Settings bound to a brand-new named in-memory database."""
    values = {
        "debug": True,
        "secret_key": TEST_SECRET,
        "database_url": f"sqlite:///file:test_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true",
        "rate_limit_enabled": False,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def user_store(settings: Settings) -> Generator[UserStore, None, None]:
    store = UserStore(settings.database_url)
    yield store
    store.close()


@pytest.fixture
def product_store(settings: Settings) -> Generator[ProductStore, None, None]:
    store = ProductStore(settings.database_url)
    yield store
    store.close()


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


@dataclass
class ApiHarness:
    """A running app plus shortcuts for seeding accounts."""

    client: TestClient
    app: FastAPI
    settings: Settings

    def create_user(self, email: str, password: str = "secret1", name: str = "Test User", role: Role = Role.user) -> int:
        """Insert an account directly through the store and return its id."""
        store: UserStore = self.app.state.user_store
        return store.create_user(
            User(name=name, email=email.lower(), hashed_password=hash_password(password), role=role)
        )

    def token_for(self, user_id: int, role: Role) -> str:
        return create_access_token(self.settings, user_id, role)

    def headers_for(self, user_id: int, role: Role) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token_for(user_id, role)}"}

    def create_product(self, headers: dict[str, str], **fields) -> dict:
        body = {"name": "Widget", "price": 9.99}
        body.update(fields)
        resp = self.client.post("/api/v1/products", json=body, headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()["product"]


@pytest.fixture
def api() -> Generator[ApiHarness, None, None]:
    """Yield an ApiHarness around a fresh app and database.

    The TestClient context runs the real lifespan, so the stores and services
    on app.state are the production ones, just pointed at the test database.
    """
    settings = make_settings()
    app = create_app(settings)
    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiHarness(client=client, app=app, settings=settings)


@pytest.fixture
def admin_headers(api: ApiHarness) -> dict[str, str]:
    uid = api.create_user("admin@example.com", name="Admin User", role=Role.admin)
    return api.headers_for(uid, Role.admin)


@pytest.fixture
def alice(api: ApiHarness) -> tuple[int, dict[str, str]]:
    """A regular user: (user_id, auth headers)."""
    uid = api.create_user("alice@example.com", name="Alice")
    return uid, api.headers_for(uid, Role.user)


@pytest.fixture
def bob(api: ApiHarness) -> tuple[int, dict[str, str]]:
    """A second regular user: (user_id, auth headers)."""
    uid = api.create_user("bob@example.com", name="Bob")
    return uid, api.headers_for(uid, Role.user)


@pytest.fixture
def limited_api() -> Generator[ApiHarness, None, None]:
    """Like api, but with the per-route rate limits switched on.

    Hit counters are process-wide, so they are cleared before and after.
    """
    limiter.reset()
    settings = make_settings(rate_limit_enabled=True)
    app = create_app(settings)
    with TestClient(app) as client:
        yield ApiHarness(client=client, app=app, settings=settings)
    limiter.reset()
