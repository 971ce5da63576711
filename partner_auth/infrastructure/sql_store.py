"""
SQL implementation of the AuthorizationStore port.

Upserts are a single INSERT .. ON CONFLICT (external_user_id) DO UPDATE
statement, so concurrent writes for the same user resolve as
last-write-wins inside the database.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.sql import func

from partner_auth.core.domain import UserAuthorization
from partner_auth.core.exceptions import StoreError
from partner_auth.core.ports import AuthorizationStore
from partner_auth.infrastructure.database import (
    Base,
    UserAuthorizationRecord,
    create_database_engine,
)
from partner_auth.oauth.config import AppConfig


logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SqlAuthorizationStore(AuthorizationStore):
    """
    AuthorizationStore backed by a SQLAlchemy async engine.

    Supports PostgreSQL (production) and SQLite (tests, local runs).
    """

    def __init__(self, engine: AsyncEngine):
        dialect = engine.dialect.name
        if dialect not in _UPSERT_DIALECTS:
            raise ValueError(f"Unsupported database dialect for upsert: {dialect}")

        self.engine = engine
        self._insert = _UPSERT_DIALECTS[dialect]
        self._sessions = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_config(cls, config: AppConfig) -> "SqlAuthorizationStore":
        """Create a store with its own engine from application config."""
        return cls(create_database_engine(config))

    async def ensure_schema(self) -> None:
        """
        Create the authorizations table if it does not exist.

        Raises:
            StoreError: If the database is unreachable or DDL fails
        """
        try:
            async with self.engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
                await conn.run_sync(Base.metadata.create_all)
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to set up the database: {e}")
            raise StoreError(f"Failed to set up the database: {e}") from e

        logger.info(
            f"Database table '{UserAuthorizationRecord.__tablename__}' is ready."
        )

    async def upsert(
        self,
        external_user_id: str,
        email: str,
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
    ) -> UserAuthorization:
        stmt = self._insert(UserAuthorizationRecord).values(
            external_user_id=external_user_id,
            email=email,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["external_user_id"],
            set_={
                "email": stmt.excluded.email,
                "access_token": stmt.excluded.access_token,
                "refresh_token": stmt.excluded.refresh_token,
                "expires_at": stmt.excluded.expires_at,
                "updated_at": func.now(),
            },
        ).returning(UserAuthorizationRecord)

        async with self._sessions() as session:
            try:
                record = await session.scalar(
                    stmt, execution_options={"populate_existing": True}
                )
                await session.commit()
            except (SQLAlchemyError, OSError) as e:
                await session.rollback()
                logger.error(
                    f"Error saving authorization: {e}",
                    extra={"extra_fields": {"external_user_id": external_user_id}},
                )
                raise StoreError(f"Failed to save authorization: {e}") from e

        logger.info(
            "Saved authorization",
            extra={"extra_fields": {"external_user_id": external_user_id}},
        )
        return UserAuthorization.model_validate(record)

    async def get(self, external_user_id: str) -> Optional[UserAuthorization]:
        async with self._sessions() as session:
            try:
                record = await session.scalar(
                    select(UserAuthorizationRecord).where(
                        UserAuthorizationRecord.external_user_id == external_user_id
                    )
                )
            except (SQLAlchemyError, OSError) as e:
                raise StoreError(f"Failed to load authorization: {e}") from e

        if record is None:
            return None
        return UserAuthorization.model_validate(record)

    async def close(self) -> None:
        """Dispose the connection pool."""
        await self.engine.dispose()
