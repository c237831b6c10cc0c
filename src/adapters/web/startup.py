"""Web application startup (FastAPI + uvicorn).

Why in adapters:
- HTTP is an infrastructure detail; the Core hands over `AppSettings` and the
  environment name, nothing else.
- `create_app` is a factory so tests can build an app without a server.
"""

from __future__ import annotations

import logging
from pathlib import Path

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from core.config import APP_NAME, AppSettings, get_version
from core.hosting.environment import DEVELOPMENT

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/info")
def info(request: Request) -> dict[str, str]:
    return {
        "name": APP_NAME,
        "version": get_version(),
        "environment": request.app.state.environment,
    }


def create_app(settings: AppSettings, *, environment: str, base_path: Path | None = None) -> FastAPI:
    """Build the FastAPI application for `environment`.

    Interactive docs are only exposed in Development.
    """

    development = environment == DEVELOPMENT
    app = FastAPI(
        title=APP_NAME,
        version=get_version(),
        docs_url="/docs" if development else None,
        redoc_url=None,
        openapi_url="/openapi.json" if development else None,
    )
    app.state.settings = settings
    app.state.environment = environment
    app.state.base_path = base_path

    if settings.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(router)
    return app


def uvicorn_log_level(settings: AppSettings) -> str:
    level = settings.logging.default_level()
    if level <= logging.DEBUG:
        return "debug"
    if level <= logging.INFO:
        return "info"
    if level <= logging.WARNING:
        return "warning"
    if level <= logging.ERROR:
        return "error"
    return "critical"


def run_web_host(settings: AppSettings, *, environment: str, base_path: Path | None = None) -> None:
    """Serve the application until the process is stopped."""

    host, port = settings.bind_address()
    app = create_app(settings, environment=environment, base_path=base_path)
    logger.info("Starting %s on http://%s:%s (environment: %s)", APP_NAME, host, port, environment)
    # log_config=None: uvicorn loggers propagate to the root Rich handler.
    uvicorn.run(app, host=host, port=port, log_config=None, log_level=uvicorn_log_level(settings))
