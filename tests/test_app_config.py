"""
Tests for application configuration.
"""

import os
from unittest.mock import patch

import pytest

from partner_auth.oauth.config import (
    DEFAULT_SCOPES,
    AppConfig,
    get_app_config,
)


class TestAppConfig:
    """Tests for AppConfig."""

    def test_from_env_loads_variables(self):
        env = {
            "CLIENT_ID": "client-id",
            "CLIENT_SECRET": "client-secret",
            "DATABASE_URL": "postgresql+asyncpg://u:p@db/auth",
            "DOMAIN": "partner.example.com",
            "PORT": "8443",
            "OAUTH_SCOPES": "offline_access User.Read",
            "PROVIDER_TIMEOUT_SECONDS": "20",
            "DATABASE_POOL_SIZE": "5",
            "TLS_KEY_FILE": "/etc/tls/key.pem",
            "TLS_CERT_FILE": "/etc/tls/cert.pem",
        }

        with patch.dict(os.environ, env, clear=True):
            config = AppConfig.from_env()

        assert config.client_id == "client-id"
        assert config.client_secret == "client-secret"
        assert config.database_url == "postgresql+asyncpg://u:p@db/auth"
        assert config.domain == "partner.example.com"
        assert config.port == 8443
        assert config.scopes == ("offline_access", "User.Read")
        assert config.provider_timeout == 20.0
        assert config.database_pool_size == 5
        assert config.tls_keyfile == "/etc/tls/key.pem"
        assert config.tls_certfile == "/etc/tls/cert.pem"

    def test_from_env_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = AppConfig.from_env()

        assert config.client_id is None
        assert config.client_secret is None
        assert config.database_url == ""
        assert config.domain == "localhost"
        assert config.port == 3000
        assert config.scopes == DEFAULT_SCOPES
        assert config.provider_timeout == 15.0
        assert config.tls_keyfile == "key.pem"
        assert config.tls_certfile == "cert.pem"

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("postgres://u:p@db/auth", "postgresql+asyncpg://u:p@db/auth"),
            ("postgresql://u:p@db/auth", "postgresql+asyncpg://u:p@db/auth"),
            ("postgresql+asyncpg://u:p@db/auth", "postgresql+asyncpg://u:p@db/auth"),
            ("sqlite+aiosqlite:///auth.db", "sqlite+aiosqlite:///auth.db"),
            (
                "postgres://u:p@db/auth?sslmode=require",
                "postgresql+asyncpg://u:p@db/auth?ssl=require",
            ),
            (
                "postgresql://u:p@db/auth?ssl=true",
                "postgresql+asyncpg://u:p@db/auth?ssl=require",
            ),
            (
                "postgresql+asyncpg://u:p@db/auth?sslmode=disable",
                "postgresql+asyncpg://u:p@db/auth?ssl=disable",
            ),
        ],
    )
    def test_database_url_normalized(self, url, expected):
        with patch.dict(os.environ, {"DATABASE_URL": url}, clear=True):
            config = AppConfig.from_env()

        assert config.database_url == expected

    def test_redirect_uri_from_domain_and_port(self):
        config = AppConfig(
            client_id="id",
            client_secret="secret",
            database_url="sqlite+aiosqlite://",
            domain="partner.example.com",
            port=3000,
        )

        assert config.redirect_uri == (
            "https://partner.example.com:3000/partner/auth/microsoft/callback"
        )

    def test_explicit_redirect_uri_wins(self):
        with patch.dict(
            os.environ,
            {"REDIRECT_URI": "https://auth.example.com/partner/auth/microsoft/callback"},
            clear=True,
        ):
            config = AppConfig.from_env()

        assert config.redirect_uri == (
            "https://auth.example.com/partner/auth/microsoft/callback"
        )

    def test_endpoints_follow_authority(self):
        with patch.dict(
            os.environ,
            {"OAUTH_AUTHORITY": "https://login.microsoftonline.com/tenant-1/"},
            clear=True,
        ):
            config = AppConfig.from_env()

        assert config.authorize_endpoint == (
            "https://login.microsoftonline.com/tenant-1/oauth2/v2.0/authorize"
        )
        assert config.token_endpoint == (
            "https://login.microsoftonline.com/tenant-1/oauth2/v2.0/token"
        )

    def test_validate_passes_when_complete(self):
        config = AppConfig(
            client_id="id", client_secret="secret", database_url="sqlite+aiosqlite://"
        )

        config.validate()

    def test_validate_lists_missing_variables(self):
        config = AppConfig(client_id=None, client_secret=None, database_url="")

        with pytest.raises(ValueError) as exc_info:
            config.validate()

        message = str(exc_info.value)
        assert "CLIENT_ID" in message
        assert "CLIENT_SECRET" in message

    def test_validate_allows_missing_database_url(self):
        config = AppConfig(client_id="id", client_secret="secret", database_url="")

        config.validate()

    def test_validate_requires_offline_access(self):
        config = AppConfig(
            client_id="id",
            client_secret="secret",
            database_url="sqlite+aiosqlite://",
            scopes=("User.Read",),
        )

        with pytest.raises(ValueError, match="offline_access"):
            config.validate()


class TestGetAppConfig:
    """Tests for the configuration singleton."""

    def test_returns_cached_instance(self):
        assert get_app_config() is get_app_config()

    def test_reads_test_environment(self):
        config = get_app_config()

        assert config.client_id == "test-client-id"
        assert config.domain == "partner.example.com"
