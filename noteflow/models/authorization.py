"""
Domain models for the Notion authorization flow.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator

FALLBACK_DATABASE_NAME = "Noteflow Notes"


class AuthorizationRequest(BaseModel):
    """Query parameters delivered by the provider redirect."""

    code: Optional[str] = None
    state: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None


class OAuthStateClaims(BaseModel):
    """Payload carried inside a signed ``state`` value."""

    nonce: str
    user_id: Optional[str] = None
    mode: Optional[str] = None
    issued_at: datetime


class TokenExchangeResult(BaseModel):
    """Fields returned by the Notion token endpoint."""

    access_token: str
    workspace_name: Optional[str] = None
    workspace_id: Optional[str] = None
    bot_id: Optional[str] = None


class ProvisionedResource(BaseModel):
    """The database created in the user's workspace, if any."""

    resource_id: Optional[str] = None
    resource_name: str = FALLBACK_DATABASE_NAME

    @classmethod
    def fallback(cls) -> "ProvisionedResource":
        return cls(resource_id=None, resource_name=FALLBACK_DATABASE_NAME)


class AuthorizationRecord(BaseModel):
    """Token, workspace and database metadata persisted for one user."""

    access_token: Optional[str] = None
    workspace_name: Optional[str] = None
    workspace_id: Optional[str] = None
    bot_id: Optional[str] = None
    resource_id: Optional[str] = None
    resource_name: Optional[str] = None
    authorized_at: Optional[datetime] = Field(
        None, description="Set exactly when an access token is present."
    )

    @model_validator(mode="after")
    def _authorized_at_tracks_token(self) -> "AuthorizationRecord":
        if (self.access_token is None) != (self.authorized_at is None):
            raise ValueError("authorized_at must be set if and only if access_token is set")
        return self

    @classmethod
    def from_exchange(
        cls,
        token: TokenExchangeResult,
        resource: ProvisionedResource,
        *,
        authorized_at: datetime,
    ) -> "AuthorizationRecord":
        return cls(
            **token.model_dump(),
            **resource.model_dump(),
            authorized_at=authorized_at,
        )

    def to_client_payload(self) -> Dict[str, Any]:
        """camelCase view posted to the opener window."""
        return {
            "notionToken": self.access_token,
            "databaseId": self.resource_id,
            "databaseName": self.resource_name,
            "workspaceName": self.workspace_name,
            "workspaceId": self.workspace_id,
            "botId": self.bot_id,
            "authorizedAt": self.authorized_at.isoformat() if self.authorized_at else None,
        }


__all__ = [
    "AuthorizationRecord",
    "AuthorizationRequest",
    "FALLBACK_DATABASE_NAME",
    "OAuthStateClaims",
    "ProvisionedResource",
    "TokenExchangeResult",
]
