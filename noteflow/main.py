"""
FastAPI application entrypoint for the Noteflow Notion connector.
"""

from __future__ import annotations

from fastapi import FastAPI

from noteflow.api.routes import router as api_router
from noteflow.core.config import get_settings
from noteflow.core.logging import configure_logging


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Noteflow Notion Connector",
        version="0.1.0",
        description="Connects Noteflow accounts to Notion workspaces over OAuth.",
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
