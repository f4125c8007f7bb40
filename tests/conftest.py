"""Pytest configuration shared across the suite."""

import pytest

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

from noteflow.clients import OAuthStateEncoder, SQLiteStore
from noteflow.services import OAuthStateService, TokenCipherService, UserStore


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def record_store(tmp_path) -> SQLiteStore:
    return SQLiteStore(str(tmp_path / "noteflow.db"))


@pytest.fixture
def state_service(record_store) -> OAuthStateService:
    return OAuthStateService(
        encoder=OAuthStateEncoder("state-secret"),
        store=record_store,
        ttl_seconds=900,
    )


@pytest.fixture
def user_store(record_store) -> UserStore:
    return UserStore(
        store=record_store,
        token_cipher=TokenCipherService(secret="cipher-secret"),
    )
