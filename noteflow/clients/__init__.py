"""Expose constructed client wrappers."""

from .notion_auth import NotionOAuthClient, OAuthStateEncoder
from .sqlite_store import SQLiteStore

__all__ = [
    "NotionOAuthClient",
    "OAuthStateEncoder",
    "SQLiteStore",
]
