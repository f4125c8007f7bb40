try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from datetime import datetime, timezone

import pytest

from noteflow.models.authorization import AuthorizationRecord

AUTHORIZED_AT = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


def _record(**overrides) -> AuthorizationRecord:
    values = {
        "access_token": "secret-token",
        "workspace_name": "Acme",
        "workspace_id": "ws-1",
        "bot_id": "bot-1",
        "resource_id": "db-1",
        "resource_name": "Noteflow",
        "authorized_at": AUTHORIZED_AT,
    }
    values.update(overrides)
    return AuthorizationRecord(**values)


def test_saved_record_reads_back_unchanged(user_store) -> None:
    record = _record()

    user_store.save_authorization("user-1", record)

    assert user_store.get_authorization("user-1") == record


def test_access_token_is_encrypted_at_rest(user_store, record_store) -> None:
    user_store.save_authorization("user-1", _record())

    raw = record_store.get_item(partition_key="user#user-1", sort_key="profile")
    stored = raw["notion_authorization"]
    assert stored["access_token"] != "secret-token"
    assert stored["workspace_id"] == "ws-1"


def test_new_authorization_replaces_every_field(user_store) -> None:
    user_store.save_authorization("user-1", _record())
    replacement = _record(
        access_token="second-token",
        workspace_name="Other",
        workspace_id="ws-2",
        bot_id="bot-2",
        resource_id=None,
        resource_name="Noteflow Notes",
        authorized_at=datetime(2026, 10, 20, tzinfo=timezone.utc),
    )

    user_store.save_authorization("user-1", replacement)

    assert user_store.get_authorization("user-1") == replacement


def test_saving_keeps_unrelated_profile_fields(user_store, record_store) -> None:
    record_store.put_item(
        {"pk": "user#user-1", "sk": "profile", "user_id": "user-1", "email": "a@example.com"}
    )

    user_store.save_authorization("user-1", _record())

    assert user_store.get_user("user-1")["email"] == "a@example.com"


def test_clear_authorization(user_store) -> None:
    assert user_store.clear_authorization("user-1") is False

    user_store.save_authorization("user-1", _record())

    assert user_store.clear_authorization("user-1") is True
    assert user_store.get_authorization("user-1") is None


def test_record_requires_timestamp_with_token() -> None:
    with pytest.raises(ValueError):
        AuthorizationRecord(access_token="token")
    with pytest.raises(ValueError):
        AuthorizationRecord(authorized_at=AUTHORIZED_AT)
    assert AuthorizationRecord().access_token is None
