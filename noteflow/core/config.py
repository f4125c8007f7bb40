"""
Application configuration models and helpers.

Centralizes settings management so the HTTP layer, the provisioning flow and
the maintenance scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

import os

from pydantic import AnyHttpUrl, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()

ResultMode = Literal["popup", "redirect"]


class NotionSettings(BaseSettings):
    """Configuration required for the Notion public integration."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    client_id: Optional[str] = Field(None, validation_alias="NOTION_CLIENT_ID")
    client_secret: Optional[str] = Field(
        None, validation_alias="NOTION_CLIENT_SECRET"
    )
    redirect_uri: AnyHttpUrl = Field(..., validation_alias="NOTION_REDIRECT_URI")
    api_base_url: str = Field(
        "https://api.notion.com/v1", validation_alias="NOTION_API_BASE_URL"
    )
    api_version: str = Field("2022-06-28", validation_alias="NOTION_API_VERSION")
    http_timeout_seconds: float = Field(10.0, validation_alias="NOTION_HTTP_TIMEOUT")
    database_title: str = Field(
        "Noteflow",
        validation_alias="NOTION_DATABASE_TITLE",
        description="Title given to the database created after authorization.",
    )
    result_mode: ResultMode = Field(
        "redirect",
        validation_alias="NOTION_RESULT_MODE",
        description="Default presentation of the callback outcome.",
    )

    @field_validator("client_id", "client_secret", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        """Treat empty strings from .env files as unset."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def has_client_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)


class OAuthSettings(BaseSettings):
    """OAuth state configuration."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    state_ttl_seconds: int = Field(900, validation_alias="OAUTH_STATE_TTL")
    state_secret: Optional[str] = Field(
        None,
        validation_alias="OAUTH_STATE_SECRET",
        description="HMAC key for state values. Defaults to the client secret.",
    )


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
    )
    session_user_header: str = Field(
        "X-User-Id",
        validation_alias="SESSION_USER_HEADER",
        description="Header set by the upstream auth layer for signed-in users.",
    )


class StorageSettings(BaseSettings):
    """Location of the local record store."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    db_path: str = Field("data/noteflow.db", validation_alias="NOTEFLOW_DB_PATH")


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    frontend_base_url: Optional[HttpUrl] = Field(
        None,
        validation_alias="FRONTEND_BASE_URL",
        description="Origin of the web client; used for redirects and postMessage.",
    )
    settings_path: str = Field("/settings", validation_alias="SETTINGS_PATH")
    notion: NotionSettings = Field(default_factory=NotionSettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "NotionSettings",
    "OAuthSettings",
    "ResultMode",
    "SecuritySettings",
    "StorageSettings",
    "get_settings",
]
