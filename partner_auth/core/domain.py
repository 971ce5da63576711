"""
Core domain models for partner authorizations.

These models represent the data exchanged with the identity provider and
the persisted authorization record. They are independent of any
infrastructure or delivery mechanism.
"""

from datetime import UTC, datetime, timedelta
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TokenGrant(BaseModel):
    """
    Token endpoint response for the authorization-code grant.

    Only the fields the flow relies on are declared; anything else the
    provider returns (token_type, scope, id_token, ...) is ignored.
    """

    access_token: str = Field(min_length=1, description="Bearer access token")
    refresh_token: str = Field(min_length=1, description="Refresh token")
    expires_in: int = Field(ge=0, description="Access token lifetime in seconds")

    model_config = ConfigDict(extra="ignore")

    def expires_at(self, now: datetime) -> datetime:
        """Absolute expiry of the access token relative to ``now``."""
        return now + timedelta(seconds=self.expires_in)


class ProviderProfile(BaseModel):
    """
    Identity returned by the provider's profile endpoint.

    Both fields are optional here: a profile response can be well formed
    and still miss them, which the flow reports as an incomplete profile.
    """

    external_user_id: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_graph_user(cls, payload: dict[str, Any]) -> "ProviderProfile":
        """
        Create a profile from a Microsoft Graph ``/me`` response.

        Args:
            payload: Decoded JSON body of the profile response

        Returns:
            ProviderProfile with ``id`` and ``mail`` mapped
        """
        return cls(
            external_user_id=payload.get("id") or None,
            email=payload.get("mail") or None,
        )

    def is_complete(self) -> bool:
        """Check that both the user id and the email are present."""
        return bool(self.external_user_id and self.email)


class UserAuthorization(BaseModel):
    """
    Persisted authorization of one external user.

    Unique on ``external_user_id``. A repeat authorization overwrites the
    tokens and timestamps of the existing record.
    """

    external_user_id: str = Field(description="Provider user id (unique key)")
    email: str = Field(description="User's email address")
    access_token: str
    refresh_token: str
    expires_at: datetime = Field(description="Absolute access token expiry")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("expires_at", "created_at", "updated_at", mode="after")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Treat naive timestamps coming back from storage as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v
