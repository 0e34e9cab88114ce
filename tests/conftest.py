"""
tests/conftest.py -- Shared test fixtures for punchline.

This module provides:
  - settings / settings_factory: explicit Settings pointing at an isolated SQLite file
  - app / web_client: the real application (API + web router) behind a
    TestClient with follow_redirects=False
  - user_store / joke_store: the stores the running app opened in lifespan
  - make_user: factory fixture that registers a user with cheap bcrypt rounds
  - sign_in: factory fixture that puts a valid session cookie for a user
    into the client's jar

Design: every test gets its own SQLite file under tmp_path, so nothing leaks
between tests and the stores behave exactly as they do in production
(including the UNIQUE constraint and multi-threaded access from TestClient's
worker threads).

Settings are built explicitly with _env_file=None so a developer's .env or
exported SESSION_SECRET never changes test behaviour.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.main import create_app
from auth.accounts import register
from auth.models import SessionPayload, User
from auth.session import COOKIE_NAME
from auth.store import UserStore
from core.config import Settings
from jokes.store import JokeStore
from web.routes import router as web_router

TEST_SECRET = "punchline-test-secret-0123456789abcdef0123456789abcdef"
TEST_ROUNDS = 4  # bcrypt minimum; keeps the suite fast


def _make_settings(tmp_path: Path, **overrides) -> Settings:
    values = {
        "session_secret": TEST_SECRET,
        "database_url": f"sqlite:///{tmp_path / 'punchline-test.db'}",
        "environment": "development",
        "bcrypt_rounds": TEST_ROUNDS,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings_factory(tmp_path: Path) -> Callable[..., Settings]:
    """Build isolated Settings with per-test overrides, e.g. environment="production"."""
    return lambda **overrides: _make_settings(tmp_path, **overrides)


@pytest.fixture
def settings(settings_factory: Callable[..., Settings]) -> Settings:
    return settings_factory()


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    """The application assembled the same way asgi.py does it."""
    application = create_app(settings)
    application.include_router(web_router, tags=["Web"])
    return application


@pytest.fixture
def web_client(app: FastAPI) -> Generator[TestClient, None, None]:
    """TestClient with the real lifespan and follow_redirects=False.

    follow_redirects=False is essential: we assert on redirect *locations*
    and Set-Cookie headers, which are invisible once the client follows the
    redirect.
    """
    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as client:
        yield client


@pytest.fixture
def user_store(app: FastAPI, web_client: TestClient) -> UserStore:
    return app.state.user_store


@pytest.fixture
def joke_store(app: FastAPI, web_client: TestClient) -> JokeStore:
    return app.state.joke_store


@pytest.fixture
def make_user(user_store: UserStore) -> Callable[..., User]:
    def _make(username: str = "alice", password: str = "secret1") -> User:
        return register(user_store, username, password, rounds=TEST_ROUNDS)

    return _make


@pytest.fixture
def sign_in(app: FastAPI, web_client: TestClient) -> Callable[[str], str]:
    """Store a freshly signed session cookie for a user id in web_client's jar."""

    def _sign_in(user_id: str) -> str:
        token = app.state.session_storage.codec.encode(SessionPayload(user_id=user_id))
        web_client.cookies.set(COOKIE_NAME, token)
        return token

    return _sign_in
