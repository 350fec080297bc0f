"""
tests/conftest.py -- Shared test fixtures for CompanyHub.

This module provides:
  - FakeRedis: in-memory stand-in for the redis client (get/set/delete/ping)
    with TTL tracking, so registry tests need no Redis server
  - unit fixtures: registry, hasher, store, minter, service, gateway
  - api_client: TestClient against the real app with a patched lifespan

Design: api_client uses named shared-memory SQLite URIs (not plain :memory:)
because TestClient runs def route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

The DEBUG env var must be set before any api/ import so get_settings()
auto-generates SECRET_KEY in dev mode instead of raising ValueError.
"""

from __future__ import annotations

import os
import time
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any core/api import.
os.environ.setdefault("DEBUG", "true")

import pytest
import redis
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app, build_services
from auth.gateway import AuthGateway
from auth.passwords import PasswordHasher
from auth.registry import TokenRegistry
from auth.service import AuthService
from auth.store import IdentityStore
from auth.tokens import TokenMinter
from core.config import get_settings

TEST_SECRET = "test-secret-key-that-is-at-least-32-chars"

# Minimum bcrypt cost; production default is 12.
TEST_BCRYPT_ROUNDS = 4


# ---------------------------------------------------------------------------
# Fake redis client
# ---------------------------------------------------------------------------


class FakeRedis:
    """Dict-backed subset of redis.Redis with decode_responses=True semantics.

    Set fail = True to make every command raise redis.ConnectionError, the
    way a real client does when the server is down.
    """

    def __init__(self) -> None:
        self._data: dict[str, tuple[str, float | None]] = {}
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise redis.ConnectionError("Connection refused")

    def _live(self, name: str) -> tuple[str, float | None] | None:
        entry = self._data.get(name)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and time.monotonic() >= expires_at:
            del self._data[name]
            return None
        return entry

    def set(self, name: str, value: str, ex: int | None = None) -> bool:
        self._check()
        if ex is not None and ex <= 0:
            raise redis.ResponseError("invalid expire time in 'set' command")
        self._data[name] = (str(value), time.monotonic() + ex if ex is not None else None)
        return True

    def get(self, name: str) -> str | None:
        self._check()
        entry = self._live(name)
        return entry[0] if entry is not None else None

    def delete(self, *names: str) -> int:
        self._check()
        removed = 0
        for name in names:
            if self._live(name) is not None:
                del self._data[name]
                removed += 1
        return removed

    def ttl(self, name: str) -> int:
        entry = self._live(name)
        if entry is None:
            return -2
        if entry[1] is None:
            return -1
        return int(round(entry[1] - time.monotonic()))

    def keys(self) -> list[str]:
        return [k for k in list(self._data) if self._live(k) is not None]

    def expire_now(self, name: str) -> None:
        """Test helper: make a key expire immediately."""
        value, _ = self._data[name]
        self._data[name] = (value, time.monotonic() - 1)

    def ping(self) -> bool:
        self._check()
        return True

    def close(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=TEST_BCRYPT_ROUNDS)


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def registry(fake_redis: FakeRedis) -> TokenRegistry:
    return TokenRegistry(fake_redis)


@pytest.fixture
def store() -> Generator[IdentityStore, None, None]:
    s = IdentityStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def minter(registry: TokenRegistry) -> TokenMinter:
    return TokenMinter(TEST_SECRET, registry, access_ttl=900, refresh_ttl=604800)


@pytest.fixture
def service(store: IdentityStore, hasher: PasswordHasher, minter: TokenMinter) -> AuthService:
    return AuthService(store, hasher, minter)


@pytest.fixture
def gateway(minter: TokenMinter, registry: TokenRegistry) -> AuthGateway:
    return AuthGateway(minter, registry)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(store: IdentityStore, registry: TokenRegistry):
    """Return a lifespan that wires test services into app.state.

    Uses the app's own build_services() so the orchestrator and gateway are
    constructed exactly as in production, minus Redis and the on-disk DB.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = get_settings()
        app.state.started_at = time.monotonic()
        limiter.enabled = False
        build_services(app, store, registry, PasswordHasher(rounds=TEST_BCRYPT_ROUNDS))
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, FakeRedis], None, None]:
    """Yield (client, fake_redis) for API integration tests.

    One isolated shared-memory database per test module.
    """
    db_name = request.module.__name__.rsplit(".", 1)[-1]
    store = IdentityStore(f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true")
    fake = FakeRedis()
    registry = TokenRegistry(fake)

    app.router.lifespan_context = _patch_lifespan(store, registry)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, fake

    store.close()
