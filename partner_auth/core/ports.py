"""
Port definitions (interfaces) for the core domain.

Ports define the contracts between the authorization flow and external
systems. Infrastructure adapters implement these ports; tests substitute
deterministic fakes.
"""

from datetime import datetime
from typing import Optional, Protocol

from partner_auth.core.domain import ProviderProfile, TokenGrant, UserAuthorization


class IdentityProvider(Protocol):
    """
    Port (interface) for the OAuth 2.0 identity provider.

    Implemented by MicrosoftIdentityProvider. Every call failure is raised as
    ProviderTransportError.
    """

    def authorization_url(self, state: str) -> str:
        """
        Build the provider authorization URL for a login attempt.

        Args:
            state: Anti-forgery state round-tripped through the redirect

        Returns:
            Absolute URL to redirect the browser to
        """
        ...

    async def exchange_code(self, code: str) -> TokenGrant:
        """
        Exchange an authorization code for tokens.

        Args:
            code: Authorization code from the callback

        Returns:
            TokenGrant with access token, refresh token and lifetime
        """
        ...

    async def fetch_profile(self, access_token: str) -> ProviderProfile:
        """
        Fetch the identity of the token's owner.

        Args:
            access_token: Bearer token from the exchange

        Returns:
            ProviderProfile, possibly incomplete
        """
        ...


class AuthorizationStore(Protocol):
    """
    Port (interface) for authorization persistence.

    Implemented by SqlAuthorizationStore and InMemoryAuthorizationStore.
    Every storage failure is raised as StoreError.
    """

    async def ensure_schema(self) -> None:
        """Create the record structure if missing. Idempotent."""
        ...

    async def upsert(
        self,
        external_user_id: str,
        email: str,
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
    ) -> UserAuthorization:
        """
        Insert a record, or overwrite the one with the same external user id.

        Returns:
            The stored record
        """
        ...

    async def get(self, external_user_id: str) -> Optional[UserAuthorization]:
        """Get the record for an external user id, or None."""
        ...

    async def close(self) -> None:
        """Release storage resources."""
        ...
