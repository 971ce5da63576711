"""
In-memory implementation of the AuthorizationStore port.

Useful for testing and local development without a database.
Data is lost when the application restarts.
"""

import logging
from datetime import UTC, datetime
from typing import Optional

from partner_auth.core.domain import UserAuthorization
from partner_auth.core.ports import AuthorizationStore


logger = logging.getLogger(__name__)


class InMemoryAuthorizationStore(AuthorizationStore):
    """Dict-backed store keyed by external user id."""

    def __init__(self):
        self._records: dict[str, UserAuthorization] = {}

    async def ensure_schema(self) -> None:
        pass

    async def upsert(
        self,
        external_user_id: str,
        email: str,
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
    ) -> UserAuthorization:
        now = datetime.now(UTC)
        existing = self._records.get(external_user_id)

        record = UserAuthorization(
            external_user_id=external_user_id,
            email=email,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        self._records[external_user_id] = record

        logger.info(f"Saved authorization for user {external_user_id}")
        return record

    async def get(self, external_user_id: str) -> Optional[UserAuthorization]:
        return self._records.get(external_user_id)

    async def close(self) -> None:
        pass

    def __len__(self) -> int:
        return len(self._records)
