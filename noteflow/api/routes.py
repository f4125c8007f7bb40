"""
FastAPI routes for the Notion connection.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Annotated, Any, Literal, Optional
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import RedirectResponse

from noteflow.dependencies import (
    get_app_settings,
    get_notion_oauth_client,
    get_oauth_state_service,
    get_provisioning_flow,
    get_session_user_id,
    get_user_store,
    require_session_user_id,
)
from noteflow.models.authorization import AuthorizationRecord, AuthorizationRequest
from noteflow.schemas import AuthorizeResponse, NotionAuthSavePayload, NotionAuthStatus
from noteflow.services.result_renderers import select_renderer

router = APIRouter()
logger = logging.getLogger(__name__)


def _client_origin(request: Request, settings: Any) -> str:
    """Origin of the web client: configured frontend, else this service."""
    if settings.frontend_base_url:
        url = urlparse(str(settings.frontend_base_url))
        return f"{url.scheme}://{url.netloc}"
    return f"{request.url.scheme}://{request.url.netloc}"


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/notion/authorize", status_code=HTTPStatus.OK)
async def start_notion_oauth_flow(
    request: Request,
    user_id: Annotated[str, Depends(require_session_user_id)],
    oauth_client: Annotated[Any, Depends(get_notion_oauth_client)],
    state_service: Annotated[Any, Depends(get_oauth_state_service)],
    settings: Annotated[Any, Depends(get_app_settings)],
    mode: Optional[Literal["popup", "redirect"]] = Query(
        default=None,
        description="How the callback should report the outcome.",
    ),
    redirect: bool = Query(
        default=False,
        description="When true, respond with a redirect to the Notion consent screen.",
    ),
) -> Any:
    """
    Kick off the OAuth flow by issuing a signed state and the consent URL.
    """
    if not settings.notion.has_client_credentials:
        raise HTTPException(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            detail="Notion integration is not configured.",
        )

    state = state_service.issue(user_id=user_id, mode=mode)
    authorization_url = oauth_client.build_authorization_url(state=state)

    wants_html = "text/html" in request.headers.get("accept", "").lower()
    if redirect or wants_html:
        return RedirectResponse(url=authorization_url, status_code=HTTPStatus.TEMPORARY_REDIRECT)

    return AuthorizeResponse(authorization_url=authorization_url, state=state)


@router.get("/notion/callback")
async def handle_notion_oauth_callback(
    request: Request,
    flow: Annotated[Any, Depends(get_provisioning_flow)],
    settings: Annotated[Any, Depends(get_app_settings)],
    session_user_id: Annotated[Optional[str], Depends(get_session_user_id)],
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    error: Optional[str] = Query(default=None),
    error_description: Optional[str] = Query(default=None),
) -> Response:
    """Complete the authorization and report the outcome to the browser."""
    callback = AuthorizationRequest(
        code=code, state=state, error=error, error_description=error_description
    )
    result = await flow.run(callback, session_user_id=session_user_id)

    renderer = select_renderer(
        result,
        default_mode=settings.notion.result_mode,
        origin=_client_origin(request, settings),
        settings_path=settings.settings_path,
    )
    return renderer.render(result)


@router.get("/notion/auth", response_model=NotionAuthStatus)
async def get_notion_auth_status(
    user_id: Annotated[str, Depends(require_session_user_id)],
    user_store: Annotated[Any, Depends(get_user_store)],
) -> NotionAuthStatus:
    """Report whether the signed-in user has connected Notion."""
    return _load_status(user_store, user_id)


@router.post("/notion/auth")
async def save_notion_auth(
    payload: NotionAuthSavePayload,
    user_id: Annotated[str, Depends(require_session_user_id)],
    user_store: Annotated[Any, Depends(get_user_store)],
) -> dict:
    """Store authorization data obtained by the web client."""
    if not payload.notion_token or not payload.database_id:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST, detail="Missing required fields"
        )

    record = AuthorizationRecord(
        access_token=payload.notion_token,
        workspace_name=payload.workspace_name,
        workspace_id=payload.workspace_id,
        bot_id=payload.bot_id,
        resource_id=payload.database_id,
        resource_name=payload.database_name,
        authorized_at=datetime.now(timezone.utc),
    )
    try:
        user_store.save_authorization(user_id, record)
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Failed to save Notion authorization for user %s", user_id)
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail="Failed to save authorization data",
        ) from exc

    logger.info("Notion authorization saved for user %s", user_id)
    return {"success": True}


@router.delete("/notion/auth")
async def delete_notion_auth(
    user_id: Annotated[str, Depends(require_session_user_id)],
    user_store: Annotated[Any, Depends(get_user_store)],
) -> dict:
    """Disconnect Notion for the signed-in user."""
    try:
        removed = user_store.clear_authorization(user_id)
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Failed to clear Notion authorization for user %s", user_id)
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail="Failed to remove authorization",
        ) from exc

    logger.info("Notion authorization cleared for user %s (existed=%s)", user_id, removed)
    return {"success": True}


@router.get("/notion/auth-status", response_model=NotionAuthStatus)
async def get_user_auth_status(
    user_store: Annotated[Any, Depends(get_user_store)],
    user_id: Optional[str] = Query(default=None, description="User to look up."),
) -> NotionAuthStatus:
    """Connection status lookup by explicit user id."""
    if not user_id:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST, detail="User ID is required"
        )
    return _load_status(user_store, user_id)


def _load_status(user_store: Any, user_id: str) -> NotionAuthStatus:
    try:
        record = user_store.get_authorization(user_id)
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Failed to read Notion authorization for user %s", user_id)
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail="Failed to check authorization status",
        ) from exc
    return NotionAuthStatus.from_record(record)
