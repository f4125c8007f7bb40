"""
Notion OAuth utilities.

These helpers build the consent URL, exchange authorization codes and create
the workspace database that backs a newly connected account.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import json
from hashlib import sha256
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from noteflow.core.config import NotionSettings
from noteflow.models.authorization import (
    FALLBACK_DATABASE_NAME,
    ProvisionedResource,
    TokenExchangeResult,
)


class InvalidOAuthStateError(Exception):
    """Raised when a state value is malformed, tampered with, expired or reused."""


class NotionClientError(RuntimeError):
    """Base error for Notion API calls."""


class OAuthTokenExchangeError(NotionClientError):
    """Raised when the token endpoint rejects the authorization code."""

    def __init__(self, reason: str, *, status_code: Optional[int] = None, body: Any = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code
        self.body = body


class NotionAPIError(NotionClientError):
    """Raised when a resource API call fails."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, body: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class OAuthStateEncoder:
    """Encode and decode OAuth state values to guard against tampering."""

    def __init__(self, secret_key: str) -> None:
        self._secret_key = secret_key.encode("utf-8")

    def encode(self, payload: Dict[str, Any]) -> str:
        serialized = json.dumps(payload, separators=(",", ":"), sort_keys=True)
        signature = hmac.new(self._secret_key, serialized.encode("utf-8"), sha256).digest()
        return base64.urlsafe_b64encode(signature + serialized.encode("utf-8")).decode("utf-8")

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            decoded = base64.urlsafe_b64decode(token.encode("utf-8"))
        except (binascii.Error, ValueError) as exc:
            raise InvalidOAuthStateError("OAuth state is not valid base64.") from exc
        signature, serialized = decoded[:32], decoded[32:]
        expected_signature = hmac.new(self._secret_key, serialized, sha256).digest()
        if not hmac.compare_digest(signature, expected_signature):
            raise InvalidOAuthStateError("Invalid OAuth state signature.")
        try:
            payload = json.loads(serialized)
        except ValueError as exc:
            raise InvalidOAuthStateError("OAuth state payload is not JSON.") from exc
        if not isinstance(payload, dict):
            raise InvalidOAuthStateError("OAuth state payload must be an object.")
        return payload


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _describe_error(body: Any) -> str:
    if isinstance(body, dict):
        for key in ("error_description", "error", "message"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    if isinstance(body, str) and body.strip():
        return body.strip()[:200]
    return "unknown error"


def _extract_title(data: Dict[str, Any]) -> Optional[str]:
    """Pull the plain title out of a Notion database object."""
    title = data.get("title")
    if not isinstance(title, list) or not title:
        return None
    first = title[0]
    if not isinstance(first, dict):
        return None
    text = first.get("text")
    if isinstance(text, dict) and isinstance(text.get("content"), str) and text["content"]:
        return text["content"]
    plain = first.get("plain_text")
    if isinstance(plain, str) and plain:
        return plain
    return None


def build_database_schema(title: str) -> Dict[str, Any]:
    """Request body for the notes database created in the user's workspace."""
    return {
        "parent": {"type": "workspace", "workspace": True},
        "title": [{"type": "text", "text": {"content": title}}],
        "properties": {
            "Title": {"title": {}},
            "Category": {
                "select": {
                    "options": [
                        {"name": "Daily", "color": "blue"},
                        {"name": "Work", "color": "green"},
                        {"name": "Study", "color": "purple"},
                        {"name": "Other", "color": "gray"},
                    ]
                }
            },
            "Tags": {
                "multi_select": {
                    "options": [
                        {"name": "Important", "color": "red"},
                        {"name": "To-do", "color": "yellow"},
                        {"name": "Done", "color": "green"},
                        {"name": "Reference", "color": "blue"},
                    ]
                }
            },
            "Priority": {
                "select": {
                    "options": [
                        {"name": "High", "color": "red"},
                        {"name": "Medium", "color": "yellow"},
                        {"name": "Low", "color": "gray"},
                    ]
                }
            },
            "Created": {"date": {}},
            "Type": {
                "select": {
                    "options": [
                        {"name": "Note", "color": "blue"},
                        {"name": "Document", "color": "green"},
                        {"name": "Monthly report", "color": "purple"},
                    ]
                }
            },
        },
    }


class NotionOAuthClient:
    """Build Notion authorization URLs, exchange codes and provision databases."""

    def __init__(
        self,
        settings: NotionSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def authorize_url(self) -> str:
        return f"{self._settings.api_base_url}/oauth/authorize"

    @property
    def token_url(self) -> str:
        return f"{self._settings.api_base_url}/oauth/token"

    @property
    def databases_url(self) -> str:
        return f"{self._settings.api_base_url}/databases"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._settings.http_timeout_seconds,
            transport=self._transport,
        )

    def build_authorization_url(self, state: str) -> str:
        """Construct the Notion OAuth consent URL."""
        params = {
            "client_id": self._settings.client_id or "",
            "response_type": "code",
            "owner": "user",
            "redirect_uri": str(self._settings.redirect_uri),
            "state": state,
        }
        return f"{self.authorize_url}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> TokenExchangeResult:
        """
        Exchange an authorization code for an access token.

        Uses HTTP Basic auth with the client credentials and a JSON body, as
        the Notion token endpoint expects. Network failures and timeouts are
        reported the same way as a rejected code.
        """
        if not self._settings.has_client_credentials:
            raise OAuthTokenExchangeError("Notion client credentials are not configured.")

        payload = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": str(self._settings.redirect_uri),
        }
        credentials = f"{self._settings.client_id}:{self._settings.client_secret}"
        headers = {
            "Authorization": "Basic "
            + base64.b64encode(credentials.encode("utf-8")).decode("ascii"),
            "Content-Type": "application/json",
        }

        try:
            async with self._client() as client:
                response = await client.post(self.token_url, json=payload, headers=headers)
        except httpx.RequestError as exc:
            raise OAuthTokenExchangeError(f"request failed: {exc}") from exc

        if response.status_code // 100 != 2:
            body = _error_body(response)
            raise OAuthTokenExchangeError(
                _describe_error(body), status_code=response.status_code, body=body
            )

        try:
            token_payload = response.json()
        except ValueError as exc:
            raise OAuthTokenExchangeError("token response was not JSON") from exc

        access_token = token_payload.get("access_token") if isinstance(token_payload, dict) else None
        if not access_token:
            raise OAuthTokenExchangeError(
                "Incomplete token payload returned from Notion.", body=token_payload
            )

        return TokenExchangeResult(
            access_token=access_token,
            workspace_name=token_payload.get("workspace_name"),
            workspace_id=token_payload.get("workspace_id"),
            bot_id=token_payload.get("bot_id"),
        )

    async def create_workspace_database(self, access_token: str) -> ProvisionedResource:
        """Create the notes database at the workspace root."""
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Notion-Version": self._settings.api_version,
            "Content-Type": "application/json",
        }
        body = build_database_schema(self._settings.database_title)

        try:
            async with self._client() as client:
                response = await client.post(self.databases_url, json=body, headers=headers)
        except httpx.RequestError as exc:
            raise NotionAPIError(f"Failed to call Notion API: {exc}") from exc

        if response.status_code // 100 != 2:
            error_body = _error_body(response)
            raise NotionAPIError(
                f"Notion API error: {response.status_code} {_describe_error(error_body)}",
                status_code=response.status_code,
                body=error_body,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise NotionAPIError("Unexpected Notion API response: body is not JSON.") from exc
        if not isinstance(data, dict):
            raise NotionAPIError("Unexpected Notion API response: body is not an object.")

        try:
            return ProvisionedResource(
                resource_id=data.get("id"),
                resource_name=_extract_title(data) or FALLBACK_DATABASE_NAME,
            )
        except ValidationError as exc:
            raise NotionAPIError(
                "Unexpected Notion API response: malformed database object.",
                status_code=response.status_code,
                body=data,
            ) from exc


__all__ = [
    "InvalidOAuthStateError",
    "NotionAPIError",
    "NotionClientError",
    "NotionOAuthClient",
    "OAuthStateEncoder",
    "OAuthTokenExchangeError",
    "build_database_schema",
]
