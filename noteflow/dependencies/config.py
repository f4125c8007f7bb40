"""
FastAPI dependency utilities for injecting configuration and the session user.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from noteflow.core.config import AppSettings, get_settings


@lru_cache()
def _settings_singleton() -> AppSettings:
    """Ensure configuration is created once per process."""
    return get_settings()


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return _settings_singleton()


SettingsDependency = Depends(get_app_settings)


def get_session_user_id(
    request: Request, settings: AppSettings = SettingsDependency
) -> Optional[str]:
    """
    Return the signed-in user's id, if any.

    Sessions are handled by the auth layer in front of this service, which
    forwards the authenticated user id in a header.
    """
    value = request.headers.get(settings.security.session_user_header, "").strip()
    return value or None


def require_session_user_id(
    user_id: Optional[str] = Depends(get_session_user_id),
) -> str:
    """Like ``get_session_user_id`` but rejects anonymous requests."""
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized"
        )
    return user_id


__all__ = [
    "SettingsDependency",
    "get_app_settings",
    "get_session_user_id",
    "require_session_user_id",
]
