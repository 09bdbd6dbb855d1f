"""HTTP application for slack2logs.

This module builds the FastAPI application serving the index page, the
health check and the Prometheus metrics, and the uvicorn server running it
next to the live collector.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import structlog
import uvicorn
from fastapi import APIRouter, FastAPI

from slack2logs.api.endpoints import health, metrics
from slack2logs.config import Settings, get_settings

logger = structlog.get_logger(__name__)


def create_api_router() -> APIRouter:
    """Create the router with all endpoint routers included.

    Returns:
        APIRouter configured with all endpoint routers.
    """
    api_router = APIRouter()
    api_router.include_router(health.router)
    api_router.include_router(metrics.router)

    logger.debug("api_router_created", routes=["/", "/health", "/metrics"])

    return api_router


def create_app(settings: Settings | None = None, run_mode: str = "live") -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings. If not provided, loads from environment.
        run_mode: Collection mode reported by the health check.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="slack2logs",
        description="Relays Slack channel messages into VictoriaLogs.",
        version=settings.app.app_version,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.run_mode = run_mode
    app.include_router(create_api_router())

    logger.info("fastapi_app_created", title=app.title, version=app.version)

    return app


class EmbeddedServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the host process."""

    @contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


def create_server(app: FastAPI, settings: Settings) -> uvicorn.Server:
    """Create a uvicorn server for the application.

    The caller runs ``server.serve()`` as a task and sets ``should_exit`` to
    stop it; signal handling is left to the caller.
    """
    config = uvicorn.Config(
        app,
        host=settings.app.http_host,
        port=settings.app.http_port,
        log_level=settings.app.log_level.lower(),
        timeout_graceful_shutdown=int(settings.app.http_max_graceful_shutdown),
        access_log=False,
    )
    return EmbeddedServer(config)


__all__ = [
    "create_app",
    "create_api_router",
    "create_server",
    "EmbeddedServer",
]
