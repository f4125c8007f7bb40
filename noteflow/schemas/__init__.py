"""Public schema exports."""

from .auth import AuthorizeResponse, NotionAuthSavePayload, NotionAuthStatus

__all__ = [
    "AuthorizeResponse",
    "NotionAuthSavePayload",
    "NotionAuthStatus",
]
