"""Pre-flight check for the Notion connector configuration.

Loads ``AppSettings`` from an env file and reports anything that would make
the OAuth callback fail at runtime: unset client credentials, or no secret to
sign state values or encrypt stored tokens. Usage::

    python -m scripts.check_env --env-file /opt/noteflow/.env
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List

from pydantic import ValidationError

from noteflow.core.config import AppSettings, _load_env_file

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_RUNTIME_ERROR = 5


def find_problems(settings: AppSettings) -> List[str]:
    """Return human-readable configuration problems; empty when usable."""
    problems: List[str] = []
    notion = settings.notion
    if not notion.client_id:
        problems.append("NOTION_CLIENT_ID is not set.")
    if not notion.client_secret:
        problems.append("NOTION_CLIENT_SECRET is not set.")
    if not (settings.oauth.state_secret or notion.client_secret):
        problems.append("No secret for OAuth state: set OAUTH_STATE_SECRET.")
    if not (settings.security.token_encryption_secret or notion.client_secret):
        problems.append("No secret for token storage: set TOKEN_ENCRYPTION_SECRET.")
    return problems


def _summary(settings: AppSettings) -> str:
    notion = settings.notion
    return (
        "Notion connector configuration OK.\n"
        f"  redirect uri: {notion.redirect_uri}\n"
        f"  api:          {notion.api_base_url} (version {notion.api_version})\n"
        f"  result mode:  {notion.result_mode}\n"
        f"  database:     {settings.storage.db_path}"
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Check that the Notion connector can complete OAuth callbacks."
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        type=Path,
        help="Path to the environment file (default: .env in the repo root).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Path = args.env_file

    if not env_file.exists():
        print(f"Environment file {env_file} does not exist.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    _load_env_file(str(env_file))
    try:
        settings = AppSettings()  # type: ignore[call-arg]
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    problems = find_problems(settings)
    if problems:
        print("Notion connector is misconfigured:", file=sys.stderr)
        for problem in problems:
            print(f"  - {problem}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    print(_summary(settings))
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
