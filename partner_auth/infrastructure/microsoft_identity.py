"""
Microsoft identity platform adapter.

Implements the IdentityProvider port against the Microsoft Entra ID v2.0
endpoints and the Microsoft Graph ``/me`` profile endpoint.
"""

import logging

import httpx
from authlib.integrations.httpx_client import AsyncOAuth2Client, OAuthError
from authlib.oauth2.rfc6749.parameters import prepare_grant_uri
from pydantic import ValidationError

from partner_auth.core.domain import ProviderProfile, TokenGrant
from partner_auth.core.exceptions import ProviderTransportError
from partner_auth.core.ports import IdentityProvider
from partner_auth.oauth.config import AppConfig


logger = logging.getLogger(__name__)


class MicrosoftIdentityProvider(IdentityProvider):
    """
    OAuth 2.0 authorization-code client for Microsoft identity.

    Each call opens its own HTTP client with the configured timeout.
    No retries: every failure surfaces as ProviderTransportError.
    """

    def __init__(self, config: AppConfig):
        self.client_id = config.client_id
        self.client_secret = config.client_secret
        self.redirect_uri = config.redirect_uri
        self.scopes = list(config.scopes)
        self.authorize_endpoint = config.authorize_endpoint
        self.token_endpoint = config.token_endpoint
        self.profile_endpoint = config.profile_endpoint
        self.timeout = config.provider_timeout

    def authorization_url(self, state: str) -> str:
        url = prepare_grant_uri(
            self.authorize_endpoint,
            client_id=self.client_id,
            response_type="code",
            redirect_uri=self.redirect_uri,
            scope=self.scopes,
            state=state,
            response_mode="query",
        )
        logger.debug(f"Built authorization URL for {self.authorize_endpoint}")
        return url

    async def exchange_code(self, code: str) -> TokenGrant:
        """
        Exchange the authorization code at the token endpoint.

        Credentials are sent in the form body (client_secret_post).

        Raises:
            ProviderTransportError: On any transport, HTTP or payload error
        """
        async with AsyncOAuth2Client(
            client_id=self.client_id,
            client_secret=self.client_secret,
            token_endpoint_auth_method="client_secret_post",
            redirect_uri=self.redirect_uri,
            timeout=self.timeout,
        ) as client:
            try:
                token = await client.fetch_token(
                    self.token_endpoint,
                    grant_type="authorization_code",
                    code=code,
                    redirect_uri=self.redirect_uri,
                )
            except OAuthError as e:
                raise ProviderTransportError(
                    f"Token endpoint returned an error: {e.error} {e.description or ''}".strip()
                ) from e
            except httpx.HTTPStatusError as e:
                raise ProviderTransportError(
                    f"Token request failed: {e.response.status_code} {e.response.text}"
                ) from e
            except httpx.HTTPError as e:
                raise ProviderTransportError(
                    f"Network error during token request: {e!r}"
                ) from e
            except (TypeError, ValueError) as e:
                raise ProviderTransportError(
                    f"Token endpoint returned an unreadable response: {e}"
                ) from e

        try:
            return TokenGrant.model_validate(dict(token))
        except ValidationError as e:
            raise ProviderTransportError(
                f"Token response is missing required fields: {e}"
            ) from e

    async def fetch_profile(self, access_token: str) -> ProviderProfile:
        """
        Fetch the signed-in user's profile with bearer authentication.

        Raises:
            ProviderTransportError: On any transport, HTTP or payload error
        """
        headers = {"Authorization": f"Bearer {access_token}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.profile_endpoint, headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise ProviderTransportError(
                f"Profile request failed: {e.response.status_code} {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise ProviderTransportError(
                f"Network error during profile request: {e!r}"
            ) from e
        except ValueError as e:
            raise ProviderTransportError(
                f"Profile endpoint returned an unreadable response: {e}"
            ) from e

        if not isinstance(data, dict):
            raise ProviderTransportError("Profile endpoint returned a non-object body")

        try:
            return ProviderProfile.from_graph_user(data)
        except ValidationError as e:
            raise ProviderTransportError(
                f"Profile response has malformed fields: {e}"
            ) from e
