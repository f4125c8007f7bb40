"""
User records and their Notion authorization in the record store.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from noteflow.clients.sqlite_store import SQLiteStore
from noteflow.models.authorization import AuthorizationRecord
from noteflow.services.token_cipher import TokenCipherService

_PROFILE_SORT_KEY = "profile"
_AUTHORIZATION_FIELD = "notion_authorization"


def _user_key(user_id: str) -> str:
    return f"user#{user_id}"


class UserStore:
    """Reads and writes the single authorization record owned by each user."""

    def __init__(self, *, store: SQLiteStore, token_cipher: TokenCipherService) -> None:
        self._store = store
        self._cipher = token_cipher

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self._store.get_item(
            partition_key=_user_key(user_id), sort_key=_PROFILE_SORT_KEY
        )

    def save_authorization(self, user_id: str, record: AuthorizationRecord) -> None:
        """Upsert the user's authorization, replacing every field at once."""
        stored = record.model_dump(mode="json")
        if record.access_token is not None:
            stored["access_token"] = self._cipher.encrypt(record.access_token)
        self._store.update_item(
            partition_key=_user_key(user_id),
            sort_key=_PROFILE_SORT_KEY,
            updates={
                "user_id": user_id,
                _AUTHORIZATION_FIELD: stored,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
        )

    def get_authorization(self, user_id: str) -> Optional[AuthorizationRecord]:
        user = self.get_user(user_id)
        if not user:
            return None
        stored = user.get(_AUTHORIZATION_FIELD)
        if not stored:
            return None
        data = dict(stored)
        if data.get("access_token"):
            data["access_token"] = self._cipher.decrypt(data["access_token"])
        return AuthorizationRecord.model_validate(data)

    def clear_authorization(self, user_id: str) -> bool:
        """Remove the user's authorization; returns whether one existed."""
        user = self.get_user(user_id)
        if not user or not user.get(_AUTHORIZATION_FIELD):
            return False
        self._store.update_item(
            partition_key=_user_key(user_id),
            sort_key=_PROFILE_SORT_KEY,
            updates={_AUTHORIZATION_FIELD: None},
        )
        return True


__all__ = ["UserStore"]
