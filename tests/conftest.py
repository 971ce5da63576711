"""
Shared test configuration and fixtures.
"""

import os
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from partner_auth.core.domain import ProviderProfile, TokenGrant

TEST_ENV = {
    "CLIENT_ID": "test-client-id",
    "CLIENT_SECRET": "test-client-secret",
    "DOMAIN": "partner.example.com",
    "PORT": "3000",
    "DATABASE_URL": "sqlite+aiosqlite://",
    "SESSION_SECRET_KEY": "test-secret",
}

# Set environment variables before importing app
with patch.dict(os.environ, TEST_ENV):
    from partner_auth.main import app
    from partner_auth.infrastructure.memory_store import InMemoryAuthorizationStore
    from partner_auth.oauth.config import get_app_config
    from partner_auth.oauth.dependencies import (
        get_identity_provider,
        reset_authorization_store,
        set_authorization_store,
    )


class FakeIdentityProvider:
    """
    Deterministic IdentityProvider double.

    Records every call so tests can assert that no provider traffic
    happened on rejected callbacks.
    """

    AUTHORIZE_URL = "https://login.example.com/authorize"

    def __init__(self):
        self.grant = TokenGrant(access_token="T1", refresh_token="R1", expires_in=3600)
        self.profile = ProviderProfile(external_user_id="U1", email="a@x.com")
        self.exchange_error: Exception | None = None
        self.profile_error: Exception | None = None
        self.exchanged_codes: list[str] = []
        self.profile_tokens: list[str] = []

    def authorization_url(self, state: str) -> str:
        return f"{self.AUTHORIZE_URL}?state={state}"

    async def exchange_code(self, code: str) -> TokenGrant:
        self.exchanged_codes.append(code)
        if self.exchange_error:
            raise self.exchange_error
        return self.grant

    async def fetch_profile(self, access_token: str) -> ProviderProfile:
        self.profile_tokens.append(access_token)
        if self.profile_error:
            raise self.profile_error
        return self.profile

    @property
    def call_count(self) -> int:
        return len(self.exchanged_codes) + len(self.profile_tokens)


@pytest.fixture(autouse=True)
def test_environment():
    """
    Run every test with the test environment and fresh singletons.

    Config is lru_cached and the store is a module singleton; resetting
    both keeps tests isolated.
    """
    with patch.dict(os.environ, TEST_ENV):
        get_app_config.cache_clear()
        reset_authorization_store()
        yield
    get_app_config.cache_clear()
    reset_authorization_store()


@pytest.fixture
def fake_provider():
    """Fresh fake identity provider."""
    return FakeIdentityProvider()


@pytest.fixture
def memory_store():
    """Fresh in-memory authorization store."""
    return InMemoryAuthorizationStore()


@pytest.fixture
def client(fake_provider, memory_store):
    """
    Test client wired to the fake provider and in-memory store.

    Uses an https base URL because the session cookie is Secure.
    """
    app.dependency_overrides[get_identity_provider] = lambda: fake_provider
    set_authorization_store(memory_store)

    yield TestClient(app, base_url="https://testserver")

    app.dependency_overrides.pop(get_identity_provider, None)
