"""
FastAPI dependencies for the authorization endpoints.

Wires the flow service with its infrastructure adapters. Tests inject a
store with set_authorization_store and replace get_identity_provider via
app.dependency_overrides.
"""

import logging
from typing import Annotated

from fastapi import Depends

from partner_auth.core.authorization_flow import AuthorizationFlowService
from partner_auth.core.ports import AuthorizationStore, IdentityProvider
from partner_auth.infrastructure.memory_store import InMemoryAuthorizationStore
from partner_auth.infrastructure.microsoft_identity import MicrosoftIdentityProvider
from partner_auth.infrastructure.sql_store import SqlAuthorizationStore
from partner_auth.oauth.config import AppConfig, get_app_config


logger = logging.getLogger(__name__)


def get_identity_provider(
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> IdentityProvider:
    """Provide the identity provider adapter."""
    return MicrosoftIdentityProvider(config)


# Singleton instance so the connection pool is shared across requests
_store: AuthorizationStore | None = None


def get_authorization_store() -> AuthorizationStore:
    """
    Get the authorization store singleton.

    Returns SqlAuthorizationStore when DATABASE_URL is set.
    Falls back to InMemoryAuthorizationStore for local development;
    authorizations are then lost on restart.
    """
    global _store
    if _store is None:
        config = get_app_config()
        if config.database_url:
            _store = SqlAuthorizationStore.from_config(config)
            logger.info("Using SQL authorization store")
        else:
            logger.warning(
                "DATABASE_URL is not set; using in-memory authorization store, "
                "authorizations will not survive a restart"
            )
            _store = InMemoryAuthorizationStore()
    return _store


def set_authorization_store(store: AuthorizationStore) -> None:
    """
    Set the authorization store implementation.

    Use this to inject a prepared or mock store.
    """
    global _store
    _store = store


def reset_authorization_store() -> None:
    """
    Reset the authorization store singleton.

    Useful for testing to ensure clean state between tests.
    """
    global _store
    _store = None


def get_flow_service(
    provider: Annotated[IdentityProvider, Depends(get_identity_provider)],
    store: Annotated[AuthorizationStore, Depends(get_authorization_store)],
) -> AuthorizationFlowService:
    """Provide the authorization flow service."""
    return AuthorizationFlowService(provider=provider, store=store)


# Type aliases for cleaner dependency injection
FlowService = Annotated[AuthorizationFlowService, Depends(get_flow_service)]
