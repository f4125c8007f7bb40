"""Schemas related to the Notion connection endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field

from noteflow.models.authorization import AuthorizationRecord


class AuthorizeResponse(BaseModel):
    """Consent URL returned to API clients that do not follow redirects."""

    authorization_url: str
    state: str = Field(..., description="Signed single-use state bound to the caller.")


class NotionAuthStatus(BaseModel):
    """Connection status of one user. The access token is never returned."""

    authorized: bool
    workspace_name: Optional[str] = None
    workspace_id: Optional[str] = None
    bot_id: Optional[str] = None
    database_id: Optional[str] = None
    database_name: Optional[str] = None
    authorized_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Optional[AuthorizationRecord]) -> "NotionAuthStatus":
        if record is None or not record.access_token:
            return cls(authorized=False)
        return cls(
            authorized=True,
            workspace_name=record.workspace_name,
            workspace_id=record.workspace_id,
            bot_id=record.bot_id,
            database_id=record.resource_id,
            database_name=record.resource_name,
            authorized_at=record.authorized_at,
        )


class NotionAuthSavePayload(BaseModel):
    """Authorization data saved directly by the web client.

    Accepts the camelCase keys of the popup payload as well as snake_case.
    """

    notion_token: Optional[str] = Field(
        None,
        description="Notion access token.",
        validation_alias=AliasChoices("notionToken", "notion_token"),
    )
    database_id: Optional[str] = Field(
        None,
        description="Target Notion database id.",
        validation_alias=AliasChoices("databaseId", "notionDatabaseId", "database_id"),
    )
    workspace_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("workspaceName", "workspace_name")
    )
    workspace_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("workspaceId", "workspace_id")
    )
    bot_id: Optional[str] = Field(None, validation_alias=AliasChoices("botId", "bot_id"))
    database_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("databaseName", "database_name")
    )


__all__ = ["AuthorizeResponse", "NotionAuthSavePayload", "NotionAuthStatus"]
