"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from noteflow.clients import NotionOAuthClient, OAuthStateEncoder, SQLiteStore
from noteflow.core.config import get_settings
from noteflow.services import (
    NotionProvisioningFlow,
    OAuthStateService,
    TokenCipherService,
    UserStore,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


def _fallback_secret() -> str:
    settings = _settings()
    secret = settings.notion.client_secret
    if not secret:
        raise RuntimeError(
            "No secret available: set NOTION_CLIENT_SECRET or the dedicated "
            "OAUTH_STATE_SECRET / TOKEN_ENCRYPTION_SECRET values."
        )
    return secret


@lru_cache()
def get_oauth_state_encoder() -> OAuthStateEncoder:
    """Provide an OAuth state encoder keyed by the state secret."""
    settings = _settings()
    return OAuthStateEncoder(secret_key=settings.oauth.state_secret or _fallback_secret())


@lru_cache()
def get_notion_oauth_client() -> NotionOAuthClient:
    """Create a singleton Notion OAuth client."""
    return NotionOAuthClient(_settings().notion)


@lru_cache()
def get_sqlite_store() -> SQLiteStore:
    """Provide shared SQLite record store."""
    return SQLiteStore(_settings().storage.db_path)


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption helper for token storage."""
    settings = _settings()
    secret = settings.security.token_encryption_secret or _fallback_secret()
    return TokenCipherService(secret=secret)


@lru_cache()
def get_oauth_state_service() -> OAuthStateService:
    """Provide the issuer/verifier for single-use state values."""
    return OAuthStateService(
        encoder=get_oauth_state_encoder(),
        store=get_sqlite_store(),
        ttl_seconds=_settings().oauth.state_ttl_seconds,
    )


@lru_cache()
def get_user_store() -> UserStore:
    """Provide access to user records."""
    return UserStore(store=get_sqlite_store(), token_cipher=get_token_cipher_service())


@lru_cache()
def get_provisioning_flow() -> NotionProvisioningFlow:
    """Build the callback flow from the configured collaborators."""
    settings = _settings()
    if not settings.notion.has_client_credentials:
        # Without credentials every callback stops at the configuration check,
        # and there may be no secret to key the state encoder or the cipher.
        return NotionProvisioningFlow(
            settings=settings.notion,
            oauth_client=get_notion_oauth_client(),
            state_service=None,
            user_store=None,
        )
    return NotionProvisioningFlow(
        settings=settings.notion,
        oauth_client=get_notion_oauth_client(),
        state_service=get_oauth_state_service(),
        user_store=get_user_store(),
    )


__all__ = [
    "get_notion_oauth_client",
    "get_oauth_state_encoder",
    "get_oauth_state_service",
    "get_provisioning_flow",
    "get_sqlite_store",
    "get_token_cipher_service",
    "get_user_store",
]
