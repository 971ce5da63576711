"""
Application configuration.

Loaded from environment variables into an explicit AppConfig that is
passed to the identity provider adapter and the authorization store.
"""

import os
import logging
from dataclasses import dataclass, field
from functools import lru_cache

from sqlalchemy.engine import make_url


logger = logging.getLogger(__name__)

DEFAULT_AUTHORITY = "https://login.microsoftonline.com/common"
DEFAULT_PROFILE_ENDPOINT = "https://graph.microsoft.com/v1.0/me"
# offline_access is required to get a refresh token
DEFAULT_SCOPES = ("offline_access", "Notes.Read.All", "User.Read")
CALLBACK_PATH = "/partner/auth/microsoft/callback"
# asyncpg takes libpq mode names for ssl, not booleans
SSL_MODE_ALIASES = {"true": "require", "1": "require", "false": "disable", "0": "disable"}


def _normalize_database_url(url: str) -> str:
    """
    Point plain PostgreSQL URLs at the asyncpg driver.

    Hosted providers hand out URLs with libpq-style ``sslmode=...`` or
    ``ssl=true``; asyncpg only understands ``ssl=<mode>``, so both are
    rewritten to that form.
    """
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            url = "postgresql+asyncpg://" + url[len(prefix):]
            break
    if not url.startswith("postgresql+asyncpg://"):
        return url

    parsed = make_url(url)
    query = dict(parsed.query)
    mode = query.pop("sslmode", None) or query.get("ssl")
    if mode is None:
        return url
    query["ssl"] = SSL_MODE_ALIASES.get(str(mode).lower(), mode)
    return parsed.set(query=query).render_as_string(hide_password=False)


@dataclass
class AppConfig:
    """
    Configuration settings for the authorization service.

    Loaded from environment variables. Validated at startup.
    """

    client_id: str | None
    client_secret: str | None
    database_url: str

    domain: str = "localhost"
    port: int = 3000
    explicit_redirect_uri: str | None = None

    authority: str = DEFAULT_AUTHORITY
    profile_endpoint: str = DEFAULT_PROFILE_ENDPOINT
    scopes: tuple[str, ...] = field(default=DEFAULT_SCOPES)
    provider_timeout: float = 15.0

    database_pool_size: int = 10
    database_max_overflow: int = 20

    tls_keyfile: str = "key.pem"
    tls_certfile: str = "cert.pem"

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load configuration from environment variables."""
        scopes = os.getenv("OAUTH_SCOPES")
        return cls(
            client_id=os.getenv("CLIENT_ID"),
            client_secret=os.getenv("CLIENT_SECRET"),
            database_url=_normalize_database_url(os.getenv("DATABASE_URL", "")),
            domain=os.getenv("DOMAIN", "localhost"),
            port=int(os.getenv("PORT", "3000")),
            explicit_redirect_uri=os.getenv("REDIRECT_URI") or None,
            authority=os.getenv("OAUTH_AUTHORITY", DEFAULT_AUTHORITY).rstrip("/"),
            profile_endpoint=os.getenv("PROFILE_ENDPOINT", DEFAULT_PROFILE_ENDPOINT),
            scopes=tuple(scopes.split()) if scopes else DEFAULT_SCOPES,
            provider_timeout=float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "15")),
            database_pool_size=int(os.getenv("DATABASE_POOL_SIZE", "10")),
            database_max_overflow=int(os.getenv("DATABASE_MAX_OVERFLOW", "20")),
            tls_keyfile=os.getenv("TLS_KEY_FILE", "key.pem"),
            tls_certfile=os.getenv("TLS_CERT_FILE", "cert.pem"),
        )

    @property
    def redirect_uri(self) -> str:
        """
        Redirect URI registered with the provider.

        Must match the app registration exactly.
        """
        if self.explicit_redirect_uri:
            return self.explicit_redirect_uri
        return f"https://{self.domain}:{self.port}{CALLBACK_PATH}"

    @property
    def authorize_endpoint(self) -> str:
        return f"{self.authority}/oauth2/v2.0/authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self.authority}/oauth2/v2.0/token"

    def validate(self) -> None:
        """Validate required configuration. Call at startup to fail fast."""
        missing = [
            name
            for name, value in (
                ("CLIENT_ID", self.client_id),
                ("CLIENT_SECRET", self.client_secret),
            )
            if not value
        ]
        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}"
            )
        if "offline_access" not in self.scopes:
            raise ValueError("OAUTH_SCOPES must include offline_access")


@lru_cache()
def get_app_config() -> AppConfig:
    """Get application configuration singleton."""
    return AppConfig.from_env()
