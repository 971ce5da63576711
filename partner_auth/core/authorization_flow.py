"""
Core service for the partner authorization flow.

Orchestrates the OAuth 2.0 authorization-code flow: anti-forgery state,
callback validation, code exchange, profile lookup and persistence.
Works only against the ports, so it knows nothing about HTTP, httpx or SQL.
"""

import hmac
import logging
import secrets
from collections.abc import Callable, MutableMapping
from datetime import UTC, datetime
from typing import Any, Optional

from partner_auth.core.domain import UserAuthorization
from partner_auth.core.exceptions import (
    IncompleteProfileError,
    MissingCodeError,
    StateMismatchError,
)
from partner_auth.core.ports import AuthorizationStore, IdentityProvider


logger = logging.getLogger(__name__)

STATE_SESSION_KEY = "oauth_state"
STATE_BYTES = 16


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AuthorizationFlowService:
    """
    Service driving one login attempt from initiate to persisted tokens.

    The session is any mutable mapping scoped to the browser (Starlette's
    request.session in production, a plain dict in tests).
    """

    def __init__(
        self,
        provider: IdentityProvider,
        store: AuthorizationStore,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.provider = provider
        self.store = store
        self.clock = clock

    def initiate(self, session: MutableMapping[str, Any]) -> str:
        """
        Start a login attempt.

        Generates a fresh state value, stores it in the session and builds
        the provider authorization URL carrying it.

        Args:
            session: Browser-scoped session storage

        Returns:
            Provider authorization URL to redirect to
        """
        state = secrets.token_hex(STATE_BYTES)
        session[STATE_SESSION_KEY] = state

        url = self.provider.authorization_url(state)
        logger.info("Starting authorization flow, redirecting to identity provider")
        return url

    async def complete(
        self,
        session: MutableMapping[str, Any],
        code: Optional[str],
        state: Optional[str],
    ) -> UserAuthorization:
        """
        Handle the provider callback.

        Args:
            session: Browser-scoped session storage
            code: Authorization code from the query string
            state: State from the query string

        Returns:
            The persisted UserAuthorization

        Raises:
            StateMismatchError: State missing, absent from session or different
            MissingCodeError: No authorization code in the callback
            ProviderTransportError: Token exchange or profile fetch failed
            IncompleteProfileError: Profile lacks the user id or email
            StoreError: Persisting the record failed
        """
        self._consume_state(session, state)

        if not code:
            raise MissingCodeError("Authorization code not found in callback.")

        logger.info("Exchanging authorization code for tokens")
        grant = await self.provider.exchange_code(code)
        expires_at = grant.expires_at(self.clock())

        logger.info("Fetching user profile from identity provider")
        profile = await self.provider.fetch_profile(grant.access_token)
        if not profile.is_complete():
            missing = [
                name
                for name, value in (
                    ("id", profile.external_user_id),
                    ("email", profile.email),
                )
                if not value
            ]
            raise IncompleteProfileError(
                f"Profile response is missing {' and '.join(missing)}"
            )

        authorization = await self.store.upsert(
            external_user_id=profile.external_user_id,
            email=profile.email,
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
            expires_at=expires_at,
        )

        logger.info(
            "Authorization completed",
            extra={"extra_fields": {"external_user_id": profile.external_user_id}},
        )
        return authorization

    def _consume_state(
        self, session: MutableMapping[str, Any], state: Optional[str]
    ) -> None:
        """
        Verify the returned state against the session and discard it.

        The session value is only removed on a match, so a forged callback
        cannot cancel a legitimate in-flight attempt.
        """
        expected = session.get(STATE_SESSION_KEY)
        if (
            not isinstance(expected, str)
            or not expected
            or state is None
            or not hmac.compare_digest(state.encode("utf-8"), expected.encode("utf-8"))
        ):
            raise StateMismatchError(
                "State mismatch. The request might have been tampered with."
            )
        del session[STATE_SESSION_KEY]
