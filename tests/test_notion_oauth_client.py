try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import base64
import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from noteflow.clients.notion_auth import (
    InvalidOAuthStateError,
    NotionAPIError,
    NotionOAuthClient,
    OAuthStateEncoder,
    OAuthTokenExchangeError,
)
from noteflow.core.config import NotionSettings
from noteflow.models.authorization import FALLBACK_DATABASE_NAME

REDIRECT_URI = "https://example.com/api/notion/callback"

pytestmark = pytest.mark.anyio


def _settings(**overrides) -> NotionSettings:
    values = {
        "NOTION_CLIENT_ID": "client",
        "NOTION_CLIENT_SECRET": "secret",
        "NOTION_REDIRECT_URI": REDIRECT_URI,
    }
    values.update(overrides)
    return NotionSettings(**values)


def _client(handler, **overrides) -> NotionOAuthClient:
    return NotionOAuthClient(_settings(**overrides), transport=httpx.MockTransport(handler))


def test_build_authorization_url_includes_state_and_redirect() -> None:
    client = NotionOAuthClient(_settings())

    url = urlparse(client.build_authorization_url(state="signed-state"))
    params = parse_qs(url.query)

    assert url.netloc == "api.notion.com"
    assert url.path == "/v1/oauth/authorize"
    assert params["client_id"] == ["client"]
    assert params["response_type"] == ["code"]
    assert params["owner"] == ["user"]
    assert params["redirect_uri"] == [REDIRECT_URI]
    assert params["state"] == ["signed-state"]


async def test_exchange_uses_basic_auth_and_json_body() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "access_token": "secret-token",
                "workspace_name": "Acme",
                "workspace_id": "ws-1",
                "bot_id": "bot-1",
            },
        )

    result = await _client(handler).exchange_authorization_code("the-code")

    assert result.access_token == "secret-token"
    assert result.workspace_name == "Acme"
    assert result.workspace_id == "ws-1"
    assert result.bot_id == "bot-1"

    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api.notion.com/v1/oauth/token"
    expected = base64.b64encode(b"client:secret").decode("ascii")
    assert request.headers["Authorization"] == f"Basic {expected}"
    assert json.loads(request.content) == {
        "grant_type": "authorization_code",
        "code": "the-code",
        "redirect_uri": REDIRECT_URI,
    }


async def test_exchange_reports_provider_error_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid_grant"})

    with pytest.raises(OAuthTokenExchangeError) as exc_info:
        await _client(handler).exchange_authorization_code("used-code")

    assert exc_info.value.status_code == 400
    assert exc_info.value.body == {"error": "invalid_grant"}
    assert exc_info.value.reason == "invalid_grant"


async def test_exchange_treats_timeout_as_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(OAuthTokenExchangeError):
        await _client(handler).exchange_authorization_code("code")


async def test_exchange_rejects_payload_without_token() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"workspace_name": "Acme"})

    with pytest.raises(OAuthTokenExchangeError):
        await _client(handler).exchange_authorization_code("code")


async def test_exchange_refuses_to_run_without_credentials() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    with pytest.raises(OAuthTokenExchangeError):
        await _client(handler, NOTION_CLIENT_SECRET="").exchange_authorization_code("code")
    assert calls == []


async def test_create_database_sends_bearer_token_and_schema() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"id": "db-1", "title": [{"type": "text", "text": {"content": "Team notes"}}]},
        )

    resource = await _client(handler, NOTION_DATABASE_TITLE="Team notes").create_workspace_database(
        "secret-token"
    )

    assert resource.resource_id == "db-1"
    assert resource.resource_name == "Team notes"

    request = seen[0]
    assert str(request.url) == "https://api.notion.com/v1/databases"
    assert request.headers["Authorization"] == "Bearer secret-token"
    assert request.headers["Notion-Version"] == "2022-06-28"
    body = json.loads(request.content)
    assert body["parent"] == {"type": "workspace", "workspace": True}
    assert body["title"][0]["text"]["content"] == "Team notes"
    properties = body["properties"]
    assert properties["Title"] == {"title": {}}
    assert properties["Created"] == {"date": {}}
    assert "multi_select" in properties["Tags"]
    assert {"Category", "Priority", "Type"} <= set(properties)


async def test_create_database_falls_back_when_title_missing() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": "db-2", "title": []})

    resource = await _client(handler).create_workspace_database("token")

    assert resource.resource_id == "db-2"
    assert resource.resource_name == FALLBACK_DATABASE_NAME


async def test_create_database_raises_on_server_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"message": "boom"})

    with pytest.raises(NotionAPIError) as exc_info:
        await _client(handler).create_workspace_database("token")

    assert exc_info.value.status_code == 500


async def test_create_database_rejects_malformed_object() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": 123, "title": []})

    with pytest.raises(NotionAPIError) as exc_info:
        await _client(handler).create_workspace_database("token")

    assert exc_info.value.body == {"id": 123, "title": []}


def test_state_encoder_detects_tampering() -> None:
    encoder = OAuthStateEncoder("key")
    token = encoder.encode({"nonce": "n", "user_id": "u1"})

    assert encoder.decode(token) == {"nonce": "n", "user_id": "u1"}
    with pytest.raises(InvalidOAuthStateError):
        OAuthStateEncoder("other-key").decode(token)
    with pytest.raises(InvalidOAuthStateError):
        encoder.decode("%%%not-base64%%%")
