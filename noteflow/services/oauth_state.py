"""
Issue and consume signed, single-use OAuth ``state`` values.

A state value binds the consent round-trip to the user who started it. Each
one carries a random nonce that is recorded when issued and deleted when the
callback consumes it, so a captured state cannot be replayed.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from pydantic import ValidationError

from noteflow.clients.notion_auth import InvalidOAuthStateError, OAuthStateEncoder
from noteflow.clients.sqlite_store import SQLiteStore
from noteflow.models.authorization import OAuthStateClaims

logger = logging.getLogger(__name__)

_NONCE_SORT_KEY = "nonce"


def _nonce_key(nonce: str) -> str:
    return f"oauth_state#{nonce}"


class OAuthStateService:
    """Pairs the HMAC encoder with a nonce registry in the record store."""

    def __init__(
        self,
        *,
        encoder: OAuthStateEncoder,
        store: SQLiteStore,
        ttl_seconds: int,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._encoder = encoder
        self._store = store
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def issue(self, *, user_id: Optional[str], mode: Optional[str] = None) -> str:
        nonce = uuid.uuid4().hex
        issued_at = self._clock()
        self._store.put_item(
            {
                "pk": _nonce_key(nonce),
                "sk": _NONCE_SORT_KEY,
                "user_id": user_id,
                "issued_at": issued_at.isoformat(),
            }
        )
        return self._encoder.encode(
            {
                "nonce": nonce,
                "user_id": user_id,
                "mode": mode,
                "issued_at": issued_at.isoformat(),
            }
        )

    def consume(self, state: Optional[str]) -> OAuthStateClaims:
        """Verify a state value and burn its nonce."""
        if not state:
            raise InvalidOAuthStateError("Missing OAuth state.")

        payload = self._encoder.decode(state)
        try:
            claims = OAuthStateClaims.model_validate(payload)
        except ValidationError as exc:
            raise InvalidOAuthStateError("OAuth state payload is incomplete.") from exc

        issued_at = claims.issued_at
        if issued_at.tzinfo is None:
            issued_at = issued_at.replace(tzinfo=timezone.utc)
        if self._clock() - issued_at > self._ttl:
            self._store.delete_item(
                partition_key=_nonce_key(claims.nonce), sort_key=_NONCE_SORT_KEY
            )
            raise InvalidOAuthStateError("OAuth state has expired.")

        removed = self._store.delete_item(
            partition_key=_nonce_key(claims.nonce), sort_key=_NONCE_SORT_KEY
        )
        if not removed:
            raise InvalidOAuthStateError("OAuth state was already used or never issued.")

        logger.debug("Consumed OAuth state nonce for user %s", claims.user_id)
        return claims


__all__ = ["OAuthStateService"]
