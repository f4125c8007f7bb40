"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_notion_oauth_client,
    get_oauth_state_encoder,
    get_oauth_state_service,
    get_provisioning_flow,
    get_sqlite_store,
    get_token_cipher_service,
    get_user_store,
)
from .config import (
    SettingsDependency,
    get_app_settings,
    get_session_user_id,
    require_session_user_id,
)

__all__ = [
    "SettingsDependency",
    "get_app_settings",
    "get_notion_oauth_client",
    "get_oauth_state_encoder",
    "get_oauth_state_service",
    "get_provisioning_flow",
    "get_session_user_id",
    "get_sqlite_store",
    "get_token_cipher_service",
    "get_user_store",
    "require_session_user_id",
]
