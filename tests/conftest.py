"""
tests/conftest.py -- Shared test fixtures for the auth service.

This module provides:
  - make_settings(): Settings built from explicit values, ignoring .env
  - store: isolated in-memory UserStore per test
  - hasher: PasswordHasher at bcrypt's minimum cost (fast tests)
  - api_client: TestClient over a development-mode app
  - prod_client: TestClient over a production-mode app that returns 500s
    instead of re-raising them

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because the auth service runs store calls on worker threads. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares one
in-memory instance across all connections in the same process. A uuid in the
name keeps tests isolated from each other.
"""

from __future__ import annotations

import uuid
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from auth.passwords import PasswordHasher
from auth.store import UserStore
from core.config import Settings

TEST_SECRET = "test-secret-key-0123456789abcdef0123456789abcdef"


def make_settings(**overrides) -> Settings:
    values = {
        "environment": "development",
        "secret_key": TEST_SECRET,
        "bcrypt_rounds": 4,
        "db_connect_retries": 1,
        "db_connect_delay_seconds": 0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _memory_url() -> str:
    return f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore(_memory_url())
    yield s
    s.close()


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def settings_factory(tmp_path):
    """Return make_settings with logs redirected into the test's tmp dir."""

    def factory(**overrides) -> Settings:
        overrides.setdefault("log_dir", str(tmp_path / "logs"))
        return make_settings(**overrides)

    return factory


@pytest.fixture
def dev_settings(settings_factory) -> Settings:
    return settings_factory()


@pytest.fixture
def prod_settings(settings_factory) -> Settings:
    return settings_factory(environment="production")


@pytest.fixture
def api_client(dev_settings: Settings, store: UserStore) -> Generator[TestClient, None, None]:
    """TestClient over a development-mode app backed by the isolated store.

    Development cookies are not Secure, so the client's cookie jar carries the
    session between requests exactly like a browser on http://localhost.
    """
    app = create_app(dev_settings, store=store)
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client


@pytest.fixture
def prod_client(prod_settings: Settings, store: UserStore) -> Generator[TestClient, None, None]:
    """TestClient over a production-mode app.

    raise_server_exceptions=False so tests can assert on the rendered 500 body.
    Production cookies are Secure and are not replayed over http://testserver;
    tests pass the token as a Bearer header instead.
    """
    app = create_app(prod_settings, store=store)
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
