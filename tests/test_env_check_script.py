"""Tests for the configuration pre-flight script."""

from __future__ import annotations

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from pathlib import Path

import pytest

from scripts import check_env

ENV_KEYS = [
    "NOTION_CLIENT_ID",
    "NOTION_CLIENT_SECRET",
    "NOTION_REDIRECT_URI",
    "OAUTH_STATE_SECRET",
    "TOKEN_ENCRYPTION_SECRET",
]

VALID_ENV = {
    "NOTION_CLIENT_ID": "abc",
    "NOTION_CLIENT_SECRET": "secret",
    "NOTION_REDIRECT_URI": "https://example.com/api/notion/callback",
}


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


@pytest.fixture
def env_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return tmp_path / ".env"


def test_missing_env_file_is_a_runtime_error(tmp_path: Path) -> None:
    exit_code = check_env.main(["--env-file", str(tmp_path / ".missing-env")])
    assert exit_code == check_env.EXIT_RUNTIME_ERROR


def test_complete_configuration_passes(
    env_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_env(env_file, **VALID_ENV)

    assert check_env.main(["--env-file", str(env_file)]) == check_env.EXIT_OK
    assert "https://example.com/api/notion/callback" in capsys.readouterr().out


def test_validation_failure_for_missing_redirect_uri(env_file: Path) -> None:
    _write_env(env_file, NOTION_CLIENT_ID="abc", NOTION_CLIENT_SECRET="secret")

    exit_code = check_env.main(["--env-file", str(env_file)])
    assert exit_code == check_env.EXIT_VALIDATION_ERROR


def test_missing_client_secret_reports_every_unusable_secret(
    env_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_env(
        env_file,
        NOTION_CLIENT_ID="abc",
        NOTION_REDIRECT_URI="https://example.com/api/notion/callback",
    )

    exit_code = check_env.main(["--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_VALIDATION_ERROR
    err = capsys.readouterr().err
    assert "NOTION_CLIENT_SECRET" in err
    assert "OAUTH_STATE_SECRET" in err
    assert "TOKEN_ENCRYPTION_SECRET" in err


def test_dedicated_secrets_do_not_replace_client_secret(env_file: Path) -> None:
    _write_env(
        env_file,
        NOTION_CLIENT_ID="abc",
        NOTION_REDIRECT_URI="https://example.com/api/notion/callback",
        OAUTH_STATE_SECRET="state",
        TOKEN_ENCRYPTION_SECRET="cipher",
    )

    exit_code = check_env.main(["--env-file", str(env_file)])
    assert exit_code == check_env.EXIT_VALIDATION_ERROR
