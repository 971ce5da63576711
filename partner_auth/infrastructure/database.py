"""
SQLAlchemy asyncio engine and ORM model for authorization records.
"""

import logging
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import Mapped, declarative_base, mapped_column
from sqlalchemy.sql import func

from partner_auth.oauth.config import AppConfig


logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()


class UserAuthorizationRecord(Base):
    """Stored tokens of one external user, unique on external_user_id."""

    __tablename__ = "onenote_authorizations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_user_id: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    refresh_token: Mapped[str] = mapped_column(Text, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<UserAuthorizationRecord {self.external_user_id}>"


def create_database_engine(config: AppConfig) -> AsyncEngine:
    """
    Create the async engine backing the authorization store.

    Pool sizing applies to PostgreSQL only; SQLite (tests, local runs) keeps
    the pool class SQLAlchemy picks for it.
    """
    url = make_url(config.database_url)
    options = {"echo": False, "pool_pre_ping": True}
    if url.get_backend_name() == "postgresql":
        options.update(
            pool_size=config.database_pool_size,
            max_overflow=config.database_max_overflow,
            pool_timeout=30,
            pool_recycle=3600,
        )

    logger.info(f"Creating database engine for backend: {url.get_backend_name()}")
    return create_async_engine(url, **options)
